"""URL routing for push notifications."""

from django.urls import path  # type: ignore

from .views import PushPublicKeyView, PushSubscribeView

urlpatterns = [
    path('public-key/', PushPublicKeyView.as_view(), name='push-public-key'),
    path('subscribe/', PushSubscribeView.as_view(), name='push-subscribe'),
]
