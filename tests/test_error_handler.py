from partner_api.error_handler import ErrorHandler
from partner_api.integrations.errors import (
    AuthenticationError,
    CircuitOpenError,
    RateLimitError,
    ServerError,
    ValidationError,
)


def test_handle_exception_returns_payload():
    eh = ErrorHandler()
    out = eh.handle_exception(Exception("boom"), context={"k": "v"})
    assert out["fallback"] is True
    assert out["retryable"] is False
    assert "internal error" in out["message"].lower()
    assert "boom" in out["metadata"]["error"]
    assert out["metadata"]["context"] == {"k": "v"}


def test_validation_errors_surface_fields():
    err = ValidationError("email: invalid", field_errors={"email": ["invalid"]}, status_code=400)
    out = ErrorHandler().handle_exception(err)
    assert out["retryable"] is False
    assert out["metadata"]["field_errors"] == {"email": ["invalid"]}
    assert out["metadata"]["status_code"] == 400


def test_auth_errors_fail_fast():
    out = ErrorHandler().handle_exception(AuthenticationError("bad key", status_code=401))
    assert out["retryable"] is False
    assert "PARTNER_API_KEY" in out["message"]


def test_throttling_and_outages_are_retryable():
    eh = ErrorHandler()
    limited = eh.handle_exception(RateLimitError("slow", retry_after=12.0))
    assert limited["retryable"] is True
    assert limited["metadata"]["retry_after"] == 12.0
    assert eh.handle_exception(ServerError("down", status_code=503))["retryable"] is True
    assert eh.handle_exception(CircuitOpenError("open"))["retryable"] is True
