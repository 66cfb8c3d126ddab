"""Integration tests for vehicle API endpoints."""

from __future__ import annotations

from datetime import date, timedelta
from io import BytesIO

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from django.utils import timezone
from PIL import Image
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.vehicles.models import Vehicle

User = get_user_model()


def png_upload(name: str = "car.png") -> SimpleUploadedFile:
    buffer = BytesIO()
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


class VehicleAPITests(APITestCase):
    def setUp(self) -> None:
        self.owner = User.objects.create_user(username="owner", password="OwnerPass123")
        self.stranger = User.objects.create_user(username="stranger", password="StrangerPass123")
        self.today = timezone.localdate()
        self.list_url = reverse("vehicle-list")

    def make_vehicle(self, owner=None, start=None, end=None, location="Almaty") -> Vehicle:
        return Vehicle.objects.create(
            owner=owner or self.owner,
            image_url="https://cdn.example.com/vehicles/car.jpg",
            location=location,
            available_from=start or self.today - timedelta(days=1),
            available_to=end or self.today + timedelta(days=10),
        )

    # ----- create -----

    def test_owner_can_list_a_vehicle_with_an_image(self) -> None:
        self.client.force_authenticate(self.owner)
        payload = {
            "image": png_upload(),
            "location": "Astana",
            "available_from": "2024-06-01",
            "available_to": "2024-06-30",
        }

        response = self.client.post(self.list_url, payload, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        vehicle = Vehicle.objects.get()
        self.assertEqual(vehicle.owner, self.owner)
        self.assertTrue(vehicle.image_url.endswith(".png"))
        self.assertEqual(response.data["owner_id"], self.owner.pk)
        self.assertEqual(
            response.data["availability"],
            {"start_date": "2024-06-01", "end_date": "2024-06-30"},
        )

    def test_image_is_required(self) -> None:
        self.client.force_authenticate(self.owner)
        payload = {"location": "Astana", "available_from": "2024-06-01", "available_to": "2024-06-30"}

        response = self.client.post(self.list_url, payload, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "validation_error")
        self.assertIn("image", response.data["fields"])
        self.assertFalse(Vehicle.objects.exists())

    def test_non_image_upload_is_rejected(self) -> None:
        self.client.force_authenticate(self.owner)
        fake = SimpleUploadedFile("car.png", b"definitely not a png", content_type="image/png")
        payload = {"image": fake, "location": "Astana", "available_from": "2024-06-01", "available_to": "2024-06-30"}

        response = self.client.post(self.list_url, payload, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["err"], "image: Invalid image file.")
        self.assertFalse(Vehicle.objects.exists())

    def test_inverted_window_is_rejected(self) -> None:
        self.client.force_authenticate(self.owner)
        payload = {"image": png_upload(), "location": "Astana", "available_from": "2024-06-30", "available_to": "2024-06-01"}

        response = self.client.post(self.list_url, payload, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("available_to", response.data["fields"])

    def test_anonymous_user_cannot_create(self) -> None:
        payload = {"image": png_upload(), "location": "Astana", "available_from": "2024-06-01", "available_to": "2024-06-30"}

        response = self.client.post(self.list_url, payload, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    # ----- listing -----

    def test_listing_shows_vehicles_available_today(self) -> None:
        current = self.make_vehicle()
        self.make_vehicle(start=self.today + timedelta(days=5), end=self.today + timedelta(days=9))
        self.make_vehicle(start=self.today - timedelta(days=9), end=self.today - timedelta(days=5))

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [current.pk])

    def test_fully_booked_vehicles_are_hidden(self) -> None:
        vehicle = self.make_vehicle(start=self.today, end=self.today + timedelta(days=1))
        Booking.objects.create(
            vehicle=vehicle,
            requester=self.stranger,
            start_date=self.today,
            end_date=self.today + timedelta(days=1),
            status=Booking.Status.APPROVED,
        )

        self.assertEqual(self.client.get(self.list_url).data, [])

        Booking.objects.update(status=Booking.Status.REJECTED)
        self.assertEqual([item["id"] for item in self.client.get(self.list_url).data], [vehicle.pk])

    def test_listing_filters_by_location(self) -> None:
        almaty = self.make_vehicle(location="Almaty, Medeu")
        self.make_vehicle(location="Astana")

        response = self.client.get(self.list_url, {"location": "almaty"})

        self.assertEqual([item["id"] for item in response.data], [almaty.pk])

    def test_my_vehicles(self) -> None:
        mine = self.make_vehicle(start=date(2020, 1, 1), end=date(2020, 1, 2))
        self.make_vehicle(owner=self.stranger)

        self.client.force_authenticate(self.owner)
        response = self.client.get(reverse("vehicle-my-vehicles"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [mine.pk])

    def test_retrieve_and_missing_vehicle(self) -> None:
        vehicle = self.make_vehicle()

        response = self.client.get(reverse("vehicle-detail", args=[vehicle.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["location"], "Almaty")

        missing = self.client.get(reverse("vehicle-detail", args=[vehicle.pk + 100]))
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(missing.data["code"], "not_found")

    # ----- update / delete -----

    def test_owner_can_update_without_new_image(self) -> None:
        vehicle = self.make_vehicle()
        self.client.force_authenticate(self.owner)

        response = self.client.put(
            reverse("vehicle-detail", args=[vehicle.pk]),
            {"location": "Shymkent"},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        vehicle.refresh_from_db()
        self.assertEqual(vehicle.location, "Shymkent")
        self.assertEqual(vehicle.image_url, "https://cdn.example.com/vehicles/car.jpg")

    def test_owner_can_replace_image(self) -> None:
        vehicle = self.make_vehicle()
        self.client.force_authenticate(self.owner)

        response = self.client.patch(
            reverse("vehicle-detail", args=[vehicle.pk]),
            {"image": png_upload("new.png")},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        vehicle.refresh_from_db()
        self.assertNotEqual(vehicle.image_url, "https://cdn.example.com/vehicles/car.jpg")

    def test_update_cannot_invert_window(self) -> None:
        vehicle = self.make_vehicle()
        self.client.force_authenticate(self.owner)

        response = self.client.patch(
            reverse("vehicle-detail", args=[vehicle.pk]),
            {"available_to": str(vehicle.available_from - timedelta(days=1))},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stranger_cannot_update_or_delete(self) -> None:
        vehicle = self.make_vehicle()
        self.client.force_authenticate(self.stranger)
        url = reverse("vehicle-detail", args=[vehicle.pk])

        update = self.client.put(url, {"location": "Nowhere"}, format="multipart")
        delete = self.client.delete(url)

        self.assertEqual(update.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(update.data, {"err": "Forbidden", "code": "forbidden"})
        self.assertEqual(delete.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Vehicle.objects.filter(pk=vehicle.pk).exists())

    def test_owner_can_delete_and_bookings_go_with_it(self) -> None:
        vehicle = self.make_vehicle()
        Booking.objects.create(
            vehicle=vehicle,
            requester=self.stranger,
            start_date=self.today,
            end_date=self.today,
        )
        self.client.force_authenticate(self.owner)

        response = self.client.delete(reverse("vehicle-detail", args=[vehicle.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"msg": "Vehicle deleted"})
        self.assertFalse(Vehicle.objects.exists())
        self.assertFalse(Booking.objects.exists())

    # ----- availability projection -----

    def test_availability_lists_pending_and_approved_bookings(self) -> None:
        vehicle = self.make_vehicle(start=date(2024, 6, 1), end=date(2024, 6, 30))
        approved = Booking.objects.create(
            vehicle=vehicle, requester=self.stranger,
            start_date=date(2024, 6, 5), end_date=date(2024, 6, 10), status=Booking.Status.APPROVED,
        )
        pending = Booking.objects.create(
            vehicle=vehicle, requester=self.stranger,
            start_date=date(2024, 6, 8), end_date=date(2024, 6, 15),
        )
        Booking.objects.create(
            vehicle=vehicle, requester=self.stranger,
            start_date=date(2024, 6, 20), end_date=date(2024, 6, 21), status=Booking.Status.REJECTED,
        )

        response = self.client.get(reverse("vehicle-availability", args=[vehicle.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["vehicle_id"], vehicle.pk)
        self.assertEqual(response.data["availability"], {"start_date": "2024-06-01", "end_date": "2024-06-30"})
        self.assertEqual(
            [dict(item) for item in response.data["bookings"]],
            [
                {"id": approved.pk, "start_date": "2024-06-05", "end_date": "2024-06-10", "status": "approved"},
                {"id": pending.pk, "start_date": "2024-06-08", "end_date": "2024-06-15", "status": "pending"},
            ],
        )
