"""Custom exception handling to enforce the API error envelope."""

from typing import Any

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from scopes.exceptions import (
    AlreadyExists,
    AmbiguousBindingsError,
    Conflict,
    InvalidSpec,
    ObjectNotFound,
    ReconcileCancelled,
    StoreUnavailable,
)


def _normalize_errors(payload: Any) -> list[Any]:
    """Convert DRF's response.data into a list for the envelope."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and "detail" in payload:
        # Common DRF pattern: {"detail": "..."}
        return [payload["detail"]]
    return [payload]


def _envelope_error(message: str, status_code: int) -> Response:
    return Response({"data": None, "errors": [message]}, status=status_code)


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap DRF and controller errors in `{ "data": null, "errors": [...] }` shape.

    - Invariant violations and optimistic-concurrency failures map to 409.
    - Missing objects map to 404; stored resources that cannot be reconciled to 422.
    - Store outages and cancelled passes map to 503 so clients retry.
    """

    # A duplicated binding identity needs an operator; never a silent retry.
    if isinstance(exc, AmbiguousBindingsError):
        return _envelope_error(str(exc), status.HTTP_409_CONFLICT)

    if isinstance(exc, (Conflict, AlreadyExists)):
        return _envelope_error(str(exc), status.HTTP_409_CONFLICT)

    if isinstance(exc, InvalidSpec):
        return _envelope_error(str(exc), status.HTTP_422_UNPROCESSABLE_ENTITY)

    if isinstance(exc, ObjectNotFound):
        return _envelope_error(str(exc), status.HTTP_404_NOT_FOUND)

    # Treat database errors as a temporary service outage and still respect the
    # global envelope format instead of returning Django's HTML 500 page.
    if isinstance(exc, (StoreUnavailable, DatabaseError, ReconcileCancelled)):
        return _envelope_error("Service temporarily unavailable.", status.HTTP_503_SERVICE_UNAVAILABLE)

    response = drf_exception_handler(exc, context)

    if response is None:
        return response

    # Successful responses are untouched here; BaseViewSet handles them.
    if response.status_code >= 400:
        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            errors = ["Authentication credentials were not provided or are invalid."]
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            errors = [
                "You do not have permission to perform this action on this resource."
            ]
        else:
            errors = _normalize_errors(response.data)

        response.data = {"data": None, "errors": errors}

    return response
