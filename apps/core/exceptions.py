# apps/core/exceptions.py
import logging

from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import status

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Thin wrapper around DRF's default handler:
    - Uses default mapping
    - Normalizes payload to {"message": "...", "error": ...}
    """
    resp = drf_exception_handler(exc, context)
    if resp is None:
        # Not handled by DRF default (e.g., plain Exception)
        view = context.get("view")
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}")
        return Response(
            {"message": "Internal server error", "error": "Internal server error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    data = resp.data
    message = extract_first_error_message(data)

    normalized = {
        "message": message or "Request failed.",
        "error": data,
    }

    redirect = getattr(exc, "redirect", None)
    if redirect:
        normalized["redirect"] = redirect

    return Response(normalized, status=resp.status_code, headers=_passthrough_headers(resp))


def _passthrough_headers(resp):
    # Keep Retry-After / WWW-Authenticate set by DRF
    return {key: value for key, value in resp.items() if key in ("Retry-After", "WWW-Authenticate")}


# Error Message Extract Method --------------------------------------------------
def extract_first_error_message(errors):
    """Pull a human readable message out of DRF's nested error payloads."""
    if isinstance(errors, str):
        return errors
    if isinstance(errors, dict):
        for key in ("detail", "message"):
            if key in errors:
                return extract_first_error_message(errors[key])
        for val in errors.values():
            found = extract_first_error_message(val)
            if found:
                return found
    if isinstance(errors, list):
        for val in errors:
            found = extract_first_error_message(val)
            if found:
                return found
    return None
