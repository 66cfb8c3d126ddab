"""Vehicle API views."""

from __future__ import annotations

import logging

from django.apps import apps as django_apps  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from .filters import VehicleFilterSet
from .media import MediaStore
from .models import Vehicle
from .serializers import VehicleAvailabilitySerializer, VehicleSerializer, VehicleWriteSerializer

logger = logging.getLogger(__name__)


class IsVehicleOwnerOrReadOnly(permissions.BasePermission):
    """Anyone may read; only the owner may change or delete a vehicle."""

    message = "Forbidden"

    def has_object_permission(self, request, view, obj: Vehicle):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.owner_id == request.user.id


class VehicleViewSet(viewsets.ModelViewSet):
    """Vehicle CRUD plus the public listing and calendar projection."""

    queryset = Vehicle.objects.select_related("owner")
    permission_classes = [permissions.IsAuthenticated, IsVehicleOwnerOrReadOnly]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = VehicleFilterSet
    ordering_fields = ["created_at", "available_from", "available_to"]
    media_store_class = MediaStore

    @property
    def ledger_repo(self):
        return django_apps.get_app_config("bookings").ledger_repo

    def get_permissions(self):  # type: ignore
        if self.action in {"list", "retrieve", "availability"}:
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return VehicleWriteSerializer
        return VehicleSerializer

    def get_serializer_context(self):  # type: ignore
        context = super().get_serializer_context()
        if self.action in {"create", "update", "partial_update"}:
            context["media_store"] = self.media_store_class()
        return context

    def list(self, request, *args, **kwargs):  # type: ignore
        """Vehicles bookable today: the window covers today and a day is still free."""
        today = timezone.localdate()
        queryset = self.filter_queryset(self.get_queryset()).filter(
            available_from__lte=today,
            available_to__gte=today,
        )
        vehicles = list(queryset)
        ledgers = self.ledger_repo.load_many(vehicles)
        listed = [v for v in vehicles if ledgers[v.pk].is_listed_on(today)]
        return Response(VehicleSerializer(listed, many=True).data)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vehicle = serializer.save()
        logger.info("Vehicle %s listed by user %s", vehicle.pk, request.user.pk)
        return Response(VehicleSerializer(vehicle).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        instance = self.get_object()
        # PUT behaves like PATCH: multipart edits send only what changed
        serializer = self.get_serializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        vehicle = serializer.save()
        return Response(VehicleSerializer(vehicle).data)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        vehicle = self.get_object()
        vehicle_id = vehicle.pk
        vehicle.delete()
        logger.info("Vehicle %s deleted by user %s", vehicle_id, request.user.pk)
        return Response({"msg": "Vehicle deleted"}, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="my-vehicles")
    def my_vehicles(self, request):  # type: ignore
        vehicles = self.get_queryset().filter(owner=request.user)
        return Response(VehicleSerializer(vehicles, many=True).data)

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        """Window plus the pending and approved bookings, for calendar rendering."""
        vehicle = self.get_object()
        ledger = self.ledger_repo.load(vehicle.pk)
        payload = {
            "vehicle_id": vehicle.pk,
            "availability": {
                "start_date": ledger.window.start_date,
                "end_date": ledger.window.end_date,
            },
            "bookings": [
                {
                    "id": booked.booking_id,
                    "start_date": booked.dates.start_date,
                    "end_date": booked.dates.end_date,
                    "status": booked.status.value,
                }
                for booked in sorted(ledger.bookings, key=lambda b: (b.dates.start_date, b.booking_id))
            ],
        }
        return Response(VehicleAvailabilitySerializer(payload).data)
