"""API views for Web Push."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .serializers import PushSubscriptionSerializer


class PushPublicKeyView(APIView):
    """VAPID public key the browser needs to subscribe."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        return Response({'key': settings.VAPID_PUBLIC_KEY})


class PushSubscribeView(APIView):
    """Store the caller's push subscription; repeated calls refresh it."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):  # type: ignore
        serializer = PushSubscriptionSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(
                {'err': 'Bad subscription', 'code': 'validation_error', 'fields': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        serializer.save(user=request.user)
        return Response({'ok': True})
