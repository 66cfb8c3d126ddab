"""Push subscription model.

A browser Web Push subscription belonging to a user. The Notifier
delivers booking updates to every subscription of the requester and
deletes the ones the push service reports as gone.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore


class PushSubscription(models.Model):
    """One browser/device endpoint a user subscribed with."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='push_subscriptions',
    )
    endpoint = models.URLField(max_length=1000)
    p256dh = models.CharField(max_length=255)
    auth = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'endpoint'], name='push_subscription_user_endpoint'),
        ]

    def __str__(self) -> str:
        return f"PushSubscription of {self.user_id}: {self.endpoint[:40]}"

    def as_subscription_info(self) -> dict:
        return {'endpoint': self.endpoint, 'keys': {'p256dh': self.p256dh, 'auth': self.auth}}
