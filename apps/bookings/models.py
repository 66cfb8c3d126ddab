"""Booking persistence models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import DateRange

from .domain.lifecycle import BookingStatus


class Booking(models.Model):
    """A renter's request for a vehicle on an inclusive range of days."""

    class Status(models.TextChoices):
        PENDING = BookingStatus.PENDING.value, _("Pending")
        APPROVED = BookingStatus.APPROVED.value, _("Approved")
        REJECTED = BookingStatus.REJECTED.value, _("Rejected")

    vehicle = models.ForeignKey(
        "vehicles.Vehicle",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    decided_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["vehicle", "status", "start_date", "end_date"], name="booking_vehicle_status_idx"),
            models.Index(fields=["requester", "-created_at"], name="booking_requester_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} for vehicle {self.vehicle_id} ({self.status})"

    @property
    def dates(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def clean(self) -> None:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError(_("End date must not be before start date."))
