"""Vehicle domain models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import DateRange


class Vehicle(models.Model):
    """A vehicle an owner offers for rent during an availability window."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="vehicles",
    )
    image_url = models.URLField(max_length=500)
    location = models.CharField(max_length=255)
    available_from = models.DateField(help_text=_("First day of the availability window (inclusive)."))
    available_to = models.DateField(help_text=_("Last day of the availability window (inclusive)."))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vehicle")
        verbose_name_plural = _("Vehicles")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available_to__gte=models.F("available_from")),
                name="vehicle_valid_availability",
            ),
        ]
        indexes = [
            models.Index(fields=["available_from", "available_to"], name="vehicle_window_idx"),
        ]

    def __str__(self) -> str:
        return f"Vehicle #{self.pk} at {self.location}"

    @property
    def availability(self) -> DateRange:
        return DateRange(self.available_from, self.available_to)

    def clean(self) -> None:
        if self.available_from and self.available_to and self.available_from > self.available_to:
            raise ValidationError(_("Availability end date must not be before its start date."))
