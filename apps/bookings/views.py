"""API views for bookings."""

from __future__ import annotations

import logging

from django.apps import apps as django_apps  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus

from .application.command_handlers import CreateBookingCommand, DecideBookingCommand
from .domain.lifecycle import Decision
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
    OwnerBookingSerializer,
    RequesterBookingSerializer,
)

logger = logging.getLogger(__name__)


class BookingViewSet(viewsets.GenericViewSet):
    """
    Booking requests and owner decisions.

    Writes go through the message bus; authorization, window and overlap
    rules live in the command handlers, not here.
    """

    queryset = Booking.objects.select_related("vehicle", "vehicle__owner", "requester")
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = BookingSerializer
    lookup_value_regex = r"\d+"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "decide":
            return BookingStatusSerializer
        if self.action == "my":
            return RequesterBookingSerializer
        if self.action == "owner":
            return OwnerBookingSerializer
        return BookingSerializer

    def _read(self, booking_id) -> dict:
        row = django_apps.get_app_config("bookings").booking_repo.fetch_row(booking_id)
        return BookingSerializer(row, context=self.get_serializer_context()).data

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = message_bus.handle_command(
            CreateBookingCommand(
                vehicle_id=data["vehicle_id"],
                requester_id=request.user.id,
                start_date=data["start_date"],
                end_date=data["end_date"],
            )
        )
        return Response(self._read(booking.id), status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def my(self, request):  # type: ignore
        bookings = self.get_queryset().filter(requester=request.user)
        return Response(self.get_serializer(bookings, many=True).data)

    @action(detail=False, methods=["get"])
    def owner(self, request):  # type: ignore
        bookings = self.get_queryset().filter(vehicle__owner=request.user)
        return Response(self.get_serializer(bookings, many=True).data)

    @action(detail=True, methods=["patch"], url_path="status")
    def decide(self, request, pk=None):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(
            DecideBookingCommand(
                booking_id=pk,
                actor_id=request.user.id,
                decision=Decision.from_status(serializer.validated_data["status"]),
            )
        )
        return Response(self._read(booking.id))
