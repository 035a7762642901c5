"""
Tests for the application exception hierarchy.
"""

from core.exceptions import (
    AuthenticationError,
    BaseApplicationError,
    NotFoundError,
    ValidationError,
)
from payments.exceptions import (
    PaymentNotFoundError,
    RecordStorageError,
    WebhookAuthenticationError,
    WebhookValidationError,
)


class TestBaseApplicationError:
    def test_to_dict_without_details(self):
        exc = BaseApplicationError("Something broke")

        assert exc.to_dict() == {
            "error": "Something broke",
            "error_code": "APPLICATION_ERROR",
        }

    def test_to_dict_with_details(self):
        exc = ValidationError("Bad", error_code="BAD", details={"reasons": ["x"]})

        assert exc.to_dict() == {
            "error": "Bad",
            "error_code": "BAD",
            "details": {"reasons": ["x"]},
        }

    def test_str_includes_code(self):
        assert str(NotFoundError("Missing")) == "[NOT_FOUND] Missing"


class TestPaymentExceptions:
    """Payment errors pick up HTTP status from their core base."""

    def test_http_statuses(self):
        assert WebhookAuthenticationError("x").http_status == 401
        assert WebhookValidationError("x").http_status == 400
        assert PaymentNotFoundError("x").http_status == 404
        assert RecordStorageError("x").http_status == 500

    def test_core_base_classes(self):
        assert isinstance(WebhookAuthenticationError("x"), AuthenticationError)
        assert isinstance(PaymentNotFoundError("x"), NotFoundError)

    def test_own_error_codes(self):
        assert PaymentNotFoundError("x").error_code == "RECORD_NOT_FOUND"
        assert WebhookValidationError("x").error_code == "WEBHOOK_VALIDATION_FAILED"
