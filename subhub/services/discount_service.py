"""Service for provider discount codes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..domain.exceptions import DiscountError, ProviderApiError, ValidationError
from ..domain.models import ActivityRecord, AuthenticatedUser, RequestInfo
from .activity_logger import ActivityLogger
from .entitlement_client import EntitlementClient

DISCOUNT_TYPES = ("percentage", "fixed")


class DiscountService:
    """Validates discount requests, forwards them to the provider and audits changes."""

    def __init__(
        self,
        entitlement_client: Optional[EntitlementClient],
        activity_logger: ActivityLogger,
    ) -> None:
        self._client = entitlement_client
        self._activity_logger = activity_logger

    async def create_discount(
        self,
        payload: Dict[str, Any],
        *,
        actor: Optional[AuthenticatedUser] = None,
        request_info: Optional[RequestInfo] = None,
    ) -> Dict[str, Any]:
        """
        Create a discount code at the provider.

        Args:
            payload: Provider discount fields (code, type, value, maxUses, ...)
            actor: Authenticated caller
            request_info: Caller IP and user agent for the audit trail

        Returns:
            Discount payload returned by the provider

        Raises:
            ValidationError: If code, type or value is missing or invalid
            DiscountError: If the provider rejects the request
        """
        self._validate_new_discount(payload)
        client = self._require_client()
        try:
            discount = await client.create_discount(payload)
        except ProviderApiError as exc:
            raise DiscountError.from_provider(exc) from exc

        self._activity_logger.record(
            ActivityRecord.build(
                "discount.created",
                resource_type="discount",
                resource_id=str(discount.get("id")) if discount.get("id") else None,
                user_id=actor.user_id if actor else None,
                request_info=request_info,
                metadata={
                    "code": discount.get("code", payload.get("code")),
                    "type": discount.get("type", payload.get("type")),
                    "value": discount.get("value", payload.get("value")),
                },
            )
        )
        return discount

    async def get_discount(self, discount_id: Optional[str]) -> Dict[str, Any]:
        if not discount_id:
            raise ValidationError("discountId is required")
        client = self._require_client()
        try:
            return await client.get_discount(discount_id)
        except ProviderApiError as exc:
            raise DiscountError.from_provider(exc) from exc

    async def delete_discount(
        self,
        discount_id: Optional[str],
        *,
        actor: Optional[AuthenticatedUser] = None,
        request_info: Optional[RequestInfo] = None,
    ) -> None:
        if not discount_id:
            raise ValidationError("discountId is required")
        client = self._require_client()
        try:
            await client.delete_discount(discount_id)
        except ProviderApiError as exc:
            raise DiscountError.from_provider(exc) from exc

        self._activity_logger.record(
            ActivityRecord.build(
                "discount.deleted",
                resource_type="discount",
                resource_id=discount_id,
                user_id=actor.user_id if actor else None,
                request_info=request_info,
                metadata={"discount_id": discount_id},
            )
        )

    # ------------------------------------------------------------------
    @staticmethod
    def _validate_new_discount(payload: Dict[str, Any]) -> None:
        if not payload.get("code"):
            raise ValidationError("code is required")
        if payload.get("type") not in DISCOUNT_TYPES:
            raise ValidationError('type must be "percentage" or "fixed"')
        value = payload.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ValidationError("value must be a positive number")

    def _require_client(self) -> EntitlementClient:
        if self._client is None:
            raise DiscountError.not_configured()
        return self._client
