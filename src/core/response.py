"""Envelope helpers and viewset bases shared by the API."""

from typing import Any

from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet, ReadOnlyModelViewSet


def api_response(data: Any, status: int = 200) -> Response:
    """Wrap ``data`` as ``{"data": ..., "errors": []}`` for custom actions."""

    return Response({"data": data, "errors": []}, status=status)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and "data" in payload and "errors" in payload


class EnvelopeMixin:
    """Wrap successful, non-empty responses in the standard envelope."""

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        if hasattr(response, "data") and response.status_code and response.status_code < 400:
            if response.status_code != 204 and not _is_enveloped(response.data):
                response.data = {"data": response.data, "errors": []}
        # Errors are enveloped by core.exceptions.custom_exception_handler.
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class BaseViewSet(EnvelopeMixin, ModelViewSet):
    """Writable resources (templates and instances)."""


class BaseReadOnlyViewSet(EnvelopeMixin, ReadOnlyModelViewSet):
    """Resources only the controller writes (bindings)."""


__all__ = ["api_response", "EnvelopeMixin", "BaseViewSet", "BaseReadOnlyViewSet"]
