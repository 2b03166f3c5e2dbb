"""
Domain exceptions.

Every failure that crosses the HTTP boundary is a ServiceError carrying a
machine-readable code, a human-readable message, an HTTP-style status code
and optional details.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for all service errors."""

    default_message = "Request failed"
    default_code = "SERVICE_ERROR"
    default_status = 500

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        """
        Initialize service error.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            status_code: HTTP-style status code
            details: Optional diagnostic payload
        """
        self.message = message or self.default_message
        super().__init__(self.message)
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status
        self.details = details

    def to_payload(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ServiceError):
    """Raised when input is missing or malformed."""

    default_message = "Invalid request"
    default_code = "VALIDATION_ERROR"
    default_status = 400


class AuthenticationError(ServiceError):
    """Raised when no authenticated caller is present."""

    default_message = "Authentication required"
    default_code = "UNAUTHORIZED"
    default_status = 401


class AuthorizationError(ServiceError):
    """Raised when the caller may not act on the requested resource."""

    default_message = "Not allowed"
    default_code = "FORBIDDEN"
    default_status = 403


class NotFoundError(ServiceError):
    """Raised when no matching subscription exists."""

    default_message = "Not found"
    default_code = "NOT_FOUND"
    default_status = 404


class StorageError(ServiceError):
    """Raised when a repository read or write fails."""

    default_message = "Storage operation failed"
    default_code = "STORAGE_ERROR"
    default_status = 500


class ProviderApiError(ServiceError):
    """
    Raw failure reported by the billing provider or its transport.

    ``code`` and ``status_code`` stay ``None`` when the provider did not
    supply them, so callers can apply their own defaults.
    """

    default_message = "Provider request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message, code=code, status_code=status_code, details=details)
        self.code = code
        self.status_code = status_code


class ProviderError(ServiceError):
    """Base exception for provider-reported errors surfaced to callers."""

    @classmethod
    def from_provider(cls, exc: ProviderApiError) -> "ProviderError":
        return cls(
            exc.message,
            code=exc.code,
            status_code=exc.status_code,
            details=exc.details,
        )

    @classmethod
    def not_configured(cls) -> "ProviderError":
        return cls(
            "Billing provider is not configured",
            code="PROVIDER_NOT_CONFIGURED",
            status_code=503,
        )


class LicenseError(ProviderError):
    """Raised when a license operation fails at the provider."""

    default_message = "Failed to process license operation"
    default_code = "LICENSE_ERROR"


class ProductError(ProviderError):
    """Raised when a product operation fails at the provider."""

    default_message = "Failed to process product operation"
    default_code = "PRODUCT_ERROR"


class CheckoutError(ProviderError):
    """Raised when a checkout session operation fails at the provider."""

    default_message = "Failed to process checkout session"
    default_code = "CHECKOUT_ERROR"


class DiscountError(ProviderError):
    """Raised when a discount code operation fails at the provider."""

    default_message = "Failed to process discount code"
    default_code = "DISCOUNT_ERROR"


class SubscriptionError(ProviderError):
    """Raised when a provider subscription lookup fails."""

    default_message = "Failed to get subscription"
    default_code = "SUBSCRIPTION_ERROR"
