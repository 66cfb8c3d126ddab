"""Notifications app package.

Stores browser Web Push subscriptions and delivers booking status
updates to the requester through Celery tasks.
"""
