"""Error handling helpers for Partner API callers."""
from typing import Any, Dict
import logging

from partner_api.integrations.errors import (
    AuthenticationError,
    CircuitOpenError,
    PartnerAPIError,
    PermissionDeniedError,
    ValidationError,
    is_retryable,
)
from partner_api.integrations.policy.response_wrappers import IntegrationResponseError

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"error": str(exc), "context": context or {}}

        if isinstance(exc, ValidationError):
            logger.info("Partner API rejected request: %s", exc)
            metadata.update(status_code=exc.status_code, field_errors=exc.field_errors, non_field_errors=exc.non_field_errors)
            return self._payload("The request was rejected: " + exc.message, retryable=False, fallback=False, metadata=metadata)

        if isinstance(exc, (AuthenticationError, PermissionDeniedError)):
            logger.error("Partner API credentials problem: %s", exc)
            metadata["status_code"] = exc.status_code
            return self._payload(
                "The Partner API refused our credentials. Check PARTNER_API_KEY and its permissions.",
                retryable=False,
                fallback=True,
                metadata=metadata,
            )

        if isinstance(exc, CircuitOpenError) or is_retryable(exc):
            logger.warning("Partner API temporarily unavailable: %s", exc)
            metadata["status_code"] = getattr(exc, "status_code", None)
            retry_after = getattr(exc, "retry_after", None)
            if retry_after is not None:
                metadata["retry_after"] = retry_after
            return self._payload(
                "The Partner API is temporarily unavailable. Please try again later.",
                retryable=True,
                fallback=True,
                metadata=metadata,
            )

        if isinstance(exc, PartnerAPIError):
            logger.error("Partner API error: %s", exc)
            metadata["status_code"] = exc.status_code
            return self._payload(exc.message, retryable=False, fallback=True, metadata=metadata)

        if isinstance(exc, IntegrationResponseError):
            logger.error("Unexpected Partner API response shape: %s", exc)
            return self._payload(
                "The Partner API returned data we could not understand.",
                retryable=False,
                fallback=True,
                metadata=metadata,
            )

        logger.error("Unhandled exception calling Partner API: %s", exc, exc_info=True)
        return self._payload(
            "An internal error occurred while processing your request. Please try again later.",
            retryable=False,
            fallback=True,
            metadata=metadata,
        )

    @staticmethod
    def _payload(message: str, *, retryable: bool, fallback: bool, metadata: Dict[str, Any]) -> Dict[str, Any]:
        return {"message": message, "retryable": retryable, "fallback": fallback, "metadata": metadata}
