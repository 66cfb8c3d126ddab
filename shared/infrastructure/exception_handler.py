"""
DRF exception handler.

Every error leaves the API in the same shape::

    {"err": "<human readable message>", "code": "<stable machine code>"}

Domain errors carry their own status and code. DRF and Django errors are
flattened into the same envelope (field errors are kept under ``fields``).
Anything else is logged and reported as an opaque 500.
"""

from __future__ import annotations

import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Internal server error."


def _first_message(data) -> str:
    if isinstance(data, dict):
        if "detail" in data:
            return _first_message(data["detail"])
        if "non_field_errors" in data:
            return _first_message(data["non_field_errors"])
        for field_name, value in data.items():
            return f"{field_name}: {_first_message(value)}"
        return ""
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ""
    return str(data)


def _error_code(exc) -> str:
    if isinstance(exc, exceptions.ValidationError):
        return "validation_error"
    if isinstance(exc, (exceptions.PermissionDenied, PermissionDenied)):
        return "forbidden"
    if isinstance(exc, exceptions.APIException):
        return exc.default_code
    if isinstance(exc, Http404):
        return "not_found"
    return "error"


def api_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        set_rollback()
        view = context.get("view")
        logger.info(
            "Domain error in %s: %s (%s)",
            view.__class__.__name__ if view else "api",
            exc.message,
            exc.code,
        )
        return Response({"err": exc.message, "code": exc.code}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        payload = {"err": _first_message(response.data), "code": _error_code(exc)}
        if isinstance(exc, exceptions.ValidationError) and isinstance(response.data, dict):
            payload["fields"] = response.data
        response.data = payload
        return response

    set_rollback()
    logger.error("Unhandled API error: %s", exc, exc_info=(type(exc), exc, exc.__traceback__))
    return Response(
        {"err": SERVER_ERROR_MESSAGE, "code": "server_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
