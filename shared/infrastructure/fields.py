"""
Custom serializer fields.

CalendarDateField accepts plain dates as well as full timestamps and
normalises both to a calendar day in the project's time zone, so
"2024-06-05" and "2024-06-05T18:30:00Z" address the same day.
"""

from django.utils import timezone
from rest_framework import serializers

from shared.domain.value_objects import to_calendar_date


class CalendarDateField(serializers.DateField):
    """DateField that also accepts datetimes and drops the time component."""

    default_error_messages = {
        'invalid': 'Date has wrong format. Use YYYY-MM-DD or an ISO-8601 timestamp.',
    }

    def to_internal_value(self, value):
        try:
            return to_calendar_date(value, timezone.get_default_timezone())
        except (TypeError, ValueError):
            self.fail('invalid')
