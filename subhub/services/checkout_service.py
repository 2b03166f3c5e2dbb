"""Service for provider-hosted checkout sessions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..domain.exceptions import CheckoutError, ProviderApiError, ValidationError
from ..domain.models import AuthenticatedUser
from .entitlement_client import EntitlementClient

logger = logging.getLogger(__name__)


class CheckoutService:
    """Opens checkout sessions at the provider and looks them up.

    Completion of a checkout is reported by the provider out of band; this
    service only creates and reads sessions.
    """

    def __init__(self, entitlement_client: Optional[EntitlementClient]) -> None:
        self._client = entitlement_client

    async def create_checkout(
        self,
        payload: Dict[str, Any],
        *,
        actor: Optional[AuthenticatedUser] = None,
    ) -> Dict[str, Any]:
        """
        Create a checkout session for a product.

        Args:
            payload: Provider checkout fields (productId, customerEmail, successUrl, ...)
            actor: Authenticated caller, used as the customer when no email is given

        Returns:
            Checkout session returned by the provider, including its checkoutUrl

        Raises:
            ValidationError: If productId is missing
            CheckoutError: If the provider rejects the request
        """
        if not payload.get("productId"):
            raise ValidationError("productId is required")

        payload = dict(payload)
        if actor is not None and actor.email and not payload.get("customerEmail"):
            payload["customerEmail"] = actor.email

        client = self._require_client()
        try:
            checkout = await client.create_checkout(payload)
        except ProviderApiError as exc:
            raise CheckoutError.from_provider(exc) from exc

        logger.info("Created checkout %s for product %s", checkout.get("id"), payload["productId"])
        return checkout

    async def get_checkout(self, checkout_id: Optional[str]) -> Dict[str, Any]:
        if not checkout_id:
            raise ValidationError("checkoutId is required")
        client = self._require_client()
        try:
            return await client.get_checkout(checkout_id)
        except ProviderApiError as exc:
            raise CheckoutError.from_provider(exc) from exc

    def _require_client(self) -> EntitlementClient:
        if self._client is None:
            raise CheckoutError.not_configured()
        return self._client
