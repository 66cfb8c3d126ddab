"""Notification services: Web Push subscriptions and delivery."""

from __future__ import annotations

import json
import logging
from typing import Any

from django.conf import settings  # type: ignore
from pywebpush import WebPushException, webpush

from .models import PushSubscription

logger = logging.getLogger(__name__)

EXPIRED_STATUS_CODES = (404, 410)


def subscribe(user, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
    """Store (or refresh the keys of) a user's push subscription."""
    subscription, created = PushSubscription.objects.update_or_create(
        user=user,
        endpoint=endpoint,
        defaults={'p256dh': p256dh, 'auth': auth},
    )
    logger.info(
        "Push subscription %s for user %s",
        "created" if created else "refreshed",
        user.pk,
    )
    return subscription


class Notifier:
    """
    Best-effort Web Push delivery to all subscriptions of a user.

    Subscriptions the push service reports as permanently gone (404/410)
    are deleted; any other failure is logged and skipped.
    """

    def __init__(
        self,
        *,
        vapid_private_key: str | None = None,
        vapid_claims_email: str | None = None,
        ttl: int | None = None,
    ):
        self.vapid_private_key = (
            vapid_private_key if vapid_private_key is not None else getattr(settings, 'VAPID_PRIVATE_KEY', '')
        ).strip()
        self.vapid_claims_email = vapid_claims_email or getattr(settings, 'VAPID_CLAIMS_EMAIL', '')
        self.ttl = ttl if ttl is not None else getattr(settings, 'PUSH_TTL_SECONDS', 24 * 3600)

    def is_configured(self) -> bool:
        return bool(self.vapid_private_key)

    @staticmethod
    def build_payload(title: str, body: str, url: str | None = None, data: dict[str, Any] | None = None) -> str:
        payload: dict[str, Any] = {'title': title, 'body': body}
        if url:
            payload['url'] = url
        if data:
            payload['data'] = data
        return json.dumps(payload)

    def _claims(self) -> dict[str, str]:
        email = self.vapid_claims_email
        if email and not email.startswith('mailto:'):
            email = f'mailto:{email}'
        return {'sub': email}

    def _send(self, subscription: PushSubscription, payload: str) -> str:
        """Deliver to one subscription; returns 'sent', 'expired' or 'failed'."""
        try:
            webpush(
                subscription_info=subscription.as_subscription_info(),
                data=payload,
                vapid_private_key=self.vapid_private_key,
                vapid_claims=self._claims(),
                ttl=self.ttl,
            )
            return 'sent'
        except WebPushException as exc:
            status_code = getattr(getattr(exc, 'response', None), 'status_code', None)
            if status_code in EXPIRED_STATUS_CODES:
                logger.info(
                    "Push subscription expired (%s); deleting endpoint=%s user_id=%s",
                    status_code, subscription.endpoint, subscription.user_id,
                )
                subscription.delete()
                return 'expired'
            logger.warning("Push send failed for user %s: %s", subscription.user_id, exc)
            return 'failed'
        except Exception as exc:
            logger.error("Push send failed for user %s: %s", subscription.user_id, exc, exc_info=True)
            return 'failed'

    def notify(self, user_id, title: str, body: str, url: str | None = None, data: dict[str, Any] | None = None) -> dict[str, int]:
        """
        Send one message to every subscription of ``user_id``.

        Returns counts of 'sent', 'failed' and 'expired' deliveries.
        """
        results = {'sent': 0, 'failed': 0, 'expired': 0}
        if not self.is_configured():
            logger.warning("Push notifications not configured; skipping send to user %s", user_id)
            return results

        subscriptions = list(PushSubscription.objects.filter(user_id=user_id))
        if not subscriptions:
            return results

        payload = self.build_payload(title, body, url=url, data=data)
        for subscription in subscriptions:
            results[self._send(subscription, payload)] += 1

        logger.info("Push delivery to user %s: %s", user_id, results)
        return results
