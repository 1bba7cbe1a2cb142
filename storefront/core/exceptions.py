"""
Storefront Exception Hierarchy

Structured exception classes raised by the service layer. Every exception
carries a code, message and details for logging, plus the HTTP status the
API layer renders it with.

Exception Hierarchy:
    StorefrontError
    ├── ValidationError          (400)
    ├── StateConflictError       (400)
    │   └── InsufficientPointsError
    ├── AuthorizationError       (403)
    ├── NotFoundError            (404)
    └── IntegrationError         (500)
        ├── PaymentError
        │   └── WebhookSignatureError (400)
        ├── EmailDeliveryError
        └── StorageError
"""
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """
    Base exception for all storefront errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
        status_code: HTTP status used when the error reaches a client
    """

    default_code: str = "STOREFRONT_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(StorefrontError):
    """Missing or invalid request fields."""
    default_code = "VALIDATION_ERROR"
    status_code = 400


class StateConflictError(StorefrontError):
    """Operation not allowed in the resource's current state."""
    default_code = "STATE_CONFLICT"
    status_code = 400


class InsufficientPointsError(StateConflictError):
    """Redemption larger than the loyalty balance."""
    default_code = "INSUFFICIENT_POINTS"

    def __init__(
        self,
        message: str = "Insufficient points",
        requested: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "requested": requested,
            "available": available,
        })
        super().__init__(message, details=details, **kwargs)


class AuthorizationError(StorefrontError):
    """Caller is authenticated but may not act on this resource."""
    default_code = "FORBIDDEN"
    status_code = 403


class NotFoundError(StorefrontError):
    """Unknown order, address, product, etc."""
    default_code = "NOT_FOUND"
    status_code = 404


class IntegrationError(StorefrontError):
    """An upstream provider call failed."""
    default_code = "INTEGRATION_ERROR"
    status_code = 500


class PaymentError(IntegrationError):
    """Payment processor failures."""
    default_code = "PAYMENT_ERROR"


class WebhookSignatureError(PaymentError):
    """Webhook payload could not be verified against the shared secret."""
    default_code = "WEBHOOK_SIGNATURE_INVALID"
    status_code = 400


class EmailDeliveryError(IntegrationError):
    """Transactional email send failed."""
    default_code = "EMAIL_DELIVERY_FAILED"


class StorageError(IntegrationError):
    """Image host upload/delete failed."""
    default_code = "STORAGE_ERROR"

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details["key"] = key
        super().__init__(message, details=details, **kwargs)
