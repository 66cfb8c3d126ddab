"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import date
from unittest import mock

from django.apps import apps as django_apps
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.vehicles.models import Vehicle

User = get_user_model()


class BookingAPITestMixin:
    def setUp(self) -> None:
        self.owner = User.objects.create_user(username="owner", password="OwnerPass123")
        self.renter = User.objects.create_user(username="renter", password="RenterPass123")
        self.other_renter = User.objects.create_user(username="renter2", password="RenterPass123")
        self.vehicle = Vehicle.objects.create(
            owner=self.owner,
            image_url="https://cdn.example.com/vehicles/car.jpg",
            location="Almaty",
            available_from=date(2024, 6, 1),
            available_to=date(2024, 6, 30),
        )
        self.list_url = reverse("booking-list")

    def request_booking(self, user, start: str, end: str, vehicle=None):
        self.client.force_authenticate(user)
        payload = {
            "vehicle_id": (vehicle or self.vehicle).pk,
            "start_date": start,
            "end_date": end,
        }
        return self.client.post(self.list_url, payload, format="json")

    def decide(self, booking_id, new_status: str, user=None):
        self.client.force_authenticate(user or self.owner)
        url = reverse("booking-decide", args=[booking_id])
        return self.client.patch(url, {"status": new_status}, format="json")


class BookingCreateTests(BookingAPITestMixin, APITestCase):
    def test_renter_can_request_booking(self) -> None:
        response = self.request_booking(self.renter, "2024-06-05", "2024-06-10")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["vehicle_id"], self.vehicle.pk)
        self.assertEqual(response.data["requester_id"], self.renter.pk)
        self.assertEqual(response.data["start_date"], "2024-06-05")
        booking = Booking.objects.get()
        self.assertEqual(booking.requester, self.renter)
        self.assertEqual(booking.status, Booking.Status.PENDING)

    def test_response_is_read_through_the_app_repository(self) -> None:
        repo = django_apps.get_app_config("bookings").booking_repo

        with mock.patch.object(repo, "fetch_row", wraps=repo.fetch_row) as fetch_row:
            response = self.request_booking(self.renter, "2024-06-05", "2024-06-10")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        fetch_row.assert_called_once_with(response.data["id"])

    def test_timestamps_are_truncated_to_calendar_days(self) -> None:
        response = self.request_booking(self.renter, "2024-06-05T08:00:00Z", "2024-06-10T22:00:00Z")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        booking = Booking.objects.get()
        self.assertEqual((booking.start_date, booking.end_date), (date(2024, 6, 5), date(2024, 6, 10)))

    def test_request_outside_window_fails_and_persists_nothing(self) -> None:
        response = self.request_booking(self.renter, "2024-06-29", "2024-07-02")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"err": "Invalid booking dates.", "code": "out_of_window"})
        self.assertFalse(Booking.objects.exists())

    def test_inverted_range_is_rejected(self) -> None:
        response = self.request_booking(self.renter, "2024-06-10", "2024-06-05")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "out_of_window")
        self.assertFalse(Booking.objects.exists())

    def test_missing_fields(self) -> None:
        self.client.force_authenticate(self.renter)
        response = self.client.post(self.list_url, {"vehicle_id": self.vehicle.pk}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["err"], "All fields are required.")
        self.assertEqual(response.data["code"], "validation_error")

    def test_unknown_vehicle(self) -> None:
        self.client.force_authenticate(self.renter)
        payload = {"vehicle_id": self.vehicle.pk + 999, "start_date": "2024-06-05", "end_date": "2024-06-06"}
        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"err": "Vehicle not found.", "code": "not_found"})

    def test_overlapping_pending_requests_are_allowed(self) -> None:
        first = self.request_booking(self.renter, "2024-06-05", "2024-06-10")
        second = self.request_booking(self.other_renter, "2024-06-08", "2024-06-15")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Booking.objects.filter(status=Booking.Status.PENDING).count(), 2)

    def test_request_over_approved_booking_is_refused(self) -> None:
        first = self.request_booking(self.renter, "2024-06-05", "2024-06-10")
        self.decide(first.data["id"], "approved")

        response = self.request_booking(self.other_renter, "2024-06-10", "2024-06-12")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "overlap")
        self.assertEqual(Booking.objects.count(), 1)

    def test_anonymous_user_cannot_book(self) -> None:
        payload = {"vehicle_id": self.vehicle.pk, "start_date": "2024-06-05", "end_date": "2024-06-06"}
        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("err", response.data)


class BookingDecisionTests(BookingAPITestMixin, APITestCase):
    def test_june_scenario(self) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]
        b = self.request_booking(self.other_renter, "2024-06-08", "2024-06-15").data["id"]

        approve_a = self.decide(a, "approved")
        self.assertEqual(approve_a.status_code, status.HTTP_200_OK, approve_a.data)
        self.assertEqual(approve_a.data["status"], "approved")
        self.assertIsNotNone(approve_a.data["decided_at"])

        approve_b = self.decide(b, "approved")
        self.assertEqual(approve_b.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(approve_b.data["code"], "overlap")
        self.assertEqual(Booking.objects.get(pk=b).status, Booking.Status.PENDING)

        reject_b = self.decide(b, "rejected")
        self.assertEqual(reject_b.status_code, status.HTTP_200_OK, reject_b.data)
        self.assertEqual(Booking.objects.get(pk=b).status, Booking.Status.REJECTED)
        self.assertEqual(Booking.objects.get(pk=a).status, Booking.Status.APPROVED)

    def test_order_independence(self) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]
        b = self.request_booking(self.other_renter, "2024-06-08", "2024-06-15").data["id"]

        self.assertEqual(self.decide(b, "approved").status_code, status.HTTP_200_OK)
        self.assertEqual(self.decide(a, "approved").data["code"], "overlap")
        self.assertEqual(Booking.objects.get(pk=a).status, Booking.Status.PENDING)
        self.assertEqual(Booking.objects.get(pk=b).status, Booking.Status.APPROVED)

    def test_failed_approval_retry_changes_nothing(self) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]
        b = self.request_booking(self.other_renter, "2024-06-08", "2024-06-15").data["id"]
        self.decide(a, "approved")
        before = Booking.objects.get(pk=b)

        for _ in range(3):
            response = self.decide(b, "approved")
            self.assertEqual(response.data["code"], "overlap")

        after = Booking.objects.get(pk=b)
        self.assertEqual(after.status, Booking.Status.PENDING)
        self.assertIsNone(after.decided_at)
        self.assertEqual(after.updated_at, before.updated_at)

    def test_adjacent_ranges_can_both_be_approved(self) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]
        b = self.request_booking(self.other_renter, "2024-06-11", "2024-06-15").data["id"]

        self.assertEqual(self.decide(a, "approved").status_code, status.HTTP_200_OK)
        self.assertEqual(self.decide(b, "approved").status_code, status.HTTP_200_OK)

    def test_only_owner_can_decide(self) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]

        response = self.decide(a, "approved", user=self.renter)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            response.data,
            {"err": "Only the vehicle owner can change the status.", "code": "forbidden"},
        )
        self.assertEqual(Booking.objects.get(pk=a).status, Booking.Status.PENDING)

    def test_unknown_booking(self) -> None:
        response = self.decide(424242, "approved")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"err": "Booking not found.", "code": "not_found"})

    def test_invalid_status_value(self) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]

        for value in ("pending", "cancelled", ""):
            response = self.decide(a, value)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data["err"], "Status must be approved or rejected.")

    def test_decided_booking_cannot_be_decided_again(self) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]
        self.decide(a, "rejected")

        response = self.decide(a, "approved")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_transition")
        self.assertEqual(Booking.objects.get(pk=a).status, Booking.Status.REJECTED)


class BookingNotificationTests(BookingAPITestMixin, APITestCase):
    @mock.patch("apps.notifications.tasks.send_booking_status_push.delay")
    def test_successful_decision_queues_exactly_one_notification(self, delay) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]

        with self.captureOnCommitCallbacks(execute=True):
            response = self.decide(a, "approved")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        delay.assert_called_once_with(a)

    @mock.patch("apps.notifications.tasks.send_booking_status_push.delay")
    def test_creation_does_not_notify(self, delay) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            self.request_booking(self.renter, "2024-06-05", "2024-06-10")

        delay.assert_not_called()

    @mock.patch("apps.notifications.tasks.send_booking_status_push.delay")
    def test_failed_decisions_do_not_notify(self, delay) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]
        b = self.request_booking(self.other_renter, "2024-06-08", "2024-06-15").data["id"]
        self.decide(a, "approved")
        delay.reset_mock()

        with self.captureOnCommitCallbacks(execute=True):
            self.decide(b, "approved")
            self.decide(a, "rejected")
            self.decide(b, "approved", user=self.renter)

        delay.assert_not_called()

    @mock.patch("apps.notifications.tasks.send_booking_status_push.delay", side_effect=ConnectionError("broker down"))
    def test_broker_outage_does_not_fail_the_decision(self, delay) -> None:
        a = self.request_booking(self.renter, "2024-06-05", "2024-06-10").data["id"]

        with self.captureOnCommitCallbacks(execute=True):
            response = self.decide(a, "rejected")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Booking.objects.get(pk=a).status, Booking.Status.REJECTED)
        delay.assert_called_once_with(a)


class BookingListTests(BookingAPITestMixin, APITestCase):
    def test_my_bookings_embed_vehicle(self) -> None:
        self.request_booking(self.renter, "2024-06-05", "2024-06-10")
        self.request_booking(self.other_renter, "2024-06-08", "2024-06-15")

        self.client.force_authenticate(self.renter)
        response = self.client.get(reverse("booking-my"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["vehicle"]["id"], self.vehicle.pk)
        self.assertEqual(response.data[0]["vehicle"]["location"], "Almaty")

    def test_owner_bookings_embed_requester(self) -> None:
        self.request_booking(self.renter, "2024-06-05", "2024-06-10")
        self.request_booking(self.other_renter, "2024-06-08", "2024-06-15")
        someone_else = User.objects.create_user(username="owner2", password="OwnerPass123")

        self.client.force_authenticate(self.owner)
        response = self.client.get(reverse("booking-owner"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            sorted(item["requester"]["username"] for item in response.data),
            ["renter", "renter2"],
        )

        self.client.force_authenticate(someone_else)
        self.assertEqual(self.client.get(reverse("booking-owner")).data, [])
