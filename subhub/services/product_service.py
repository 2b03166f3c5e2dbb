"""Service for the provider's product catalogue."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..domain.exceptions import ProductError, ProviderApiError, ValidationError
from ..domain.models import ActivityRecord, AuthenticatedUser, RequestInfo
from .activity_logger import ActivityLogger
from .entitlement_client import EntitlementClient

MINIMUM_PRICE_CENTS = 100
BILLING_TYPES = ("recurring", "onetime")


class ProductService:
    """Validates product requests and forwards them to the provider."""

    def __init__(
        self,
        entitlement_client: Optional[EntitlementClient],
        activity_logger: ActivityLogger,
    ) -> None:
        self._client = entitlement_client
        self._activity_logger = activity_logger

    async def create_product(
        self,
        payload: Dict[str, Any],
        *,
        actor: Optional[AuthenticatedUser] = None,
        request_info: Optional[RequestInfo] = None,
    ) -> Dict[str, Any]:
        """
        Create a product at the provider.

        Args:
            payload: Provider product fields (name, price, currency, billing_type, ...)
            actor: Authenticated caller
            request_info: Caller IP and user agent for the audit trail

        Returns:
            Product payload returned by the provider

        Raises:
            ValidationError: If a required field is missing or invalid
            ProductError: If the provider rejects the request
        """
        self._validate_new_product(payload)
        client = self._require_client()
        try:
            product = await client.create_product(payload)
        except ProviderApiError as exc:
            raise ProductError.from_provider(exc) from exc

        self._activity_logger.record(
            ActivityRecord.build(
                "product.created",
                resource_type="product",
                resource_id=str(product.get("id")) if product.get("id") else None,
                user_id=actor.user_id if actor else None,
                request_info=request_info,
                metadata={
                    "product_name": product.get("name", payload.get("name")),
                    "price": product.get("price", payload.get("price")),
                    "currency": product.get("currency", payload.get("currency")),
                    "billing_type": product.get("billing_type", payload.get("billing_type")),
                },
            )
        )
        return product

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        if not product_id:
            raise ValidationError("productId is required")
        client = self._require_client()
        try:
            return await client.get_product(product_id)
        except ProviderApiError as exc:
            raise ProductError.from_provider(exc) from exc

    async def list_products(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        client = self._require_client()
        try:
            return await client.list_products(page=page, limit=limit, search=search)
        except ProviderApiError as exc:
            raise ProductError.from_provider(exc) from exc

    # ------------------------------------------------------------------
    @staticmethod
    def _validate_new_product(payload: Dict[str, Any]) -> None:
        if not payload.get("name"):
            raise ValidationError("name is required")
        price = payload.get("price")
        if not isinstance(price, int) or isinstance(price, bool) or price < MINIMUM_PRICE_CENTS:
            raise ValidationError("price must be at least 100 cents (minimum $1.00)")
        if not payload.get("currency"):
            raise ValidationError('currency is required (e.g., "USD")')
        billing_type = payload.get("billing_type")
        if billing_type not in BILLING_TYPES:
            raise ValidationError('billing_type is required and must be "recurring" or "onetime"')
        if billing_type == "recurring" and not payload.get("billing_period"):
            raise ValidationError(
                'billing_period is required when billing_type is "recurring" (e.g., "every-month")'
            )

    def _require_client(self) -> EntitlementClient:
        if self._client is None:
            raise ProductError.not_configured()
        return self._client
