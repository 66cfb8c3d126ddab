"""Serializers for push subscriptions."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore


class SubscriptionKeysSerializer(serializers.Serializer):
    p256dh = serializers.CharField(max_length=255)
    auth = serializers.CharField(max_length=255)


class PushSubscriptionSerializer(serializers.Serializer):
    """Browser ``PushSubscription.toJSON()`` payload."""

    endpoint = serializers.URLField(max_length=1000)
    keys = SubscriptionKeysSerializer()
    expirationTime = serializers.IntegerField(required=False, allow_null=True, write_only=True)

    def save(self, **kwargs):  # type: ignore
        from .services import subscribe

        user = kwargs.get('user') or self.context['request'].user
        keys = self.validated_data['keys']
        self.instance = subscribe(user, self.validated_data['endpoint'], keys['p256dh'], keys['auth'])
        return self.instance
