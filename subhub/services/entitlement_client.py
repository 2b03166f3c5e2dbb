"""Billing/licensing provider integration (Creem-style HTTP API)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.config import Settings
from ..domain.exceptions import ProviderApiError

logger = logging.getLogger(__name__)

TEST_BASE_URL = "https://test-api.creem.io"
PRODUCTION_BASE_URL = "https://api.creem.io"


class EntitlementClient:
    """Typed async boundary to the provider's product, license and subscription API.

    Every method performs exactly one HTTP request. Failures are raised as
    ProviderApiError with the provider's status, code, message and details
    when it supplied them.
    """

    def __init__(
        self,
        api_key: str,
        *,
        test_mode: bool = True,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("Provider API key is required")
        self.base_url = base_url or (TEST_BASE_URL if test_mode else PRODUCTION_BASE_URL)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json", "x-api-key": api_key},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ============ CHECKOUTS ============

    async def create_checkout(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST /v1/checkouts"""
        return await self._request("POST", "/v1/checkouts", json=payload)

    async def get_checkout(self, checkout_id: str) -> Dict[str, Any]:
        """GET /v1/checkouts?id=..."""
        return await self._request("GET", "/v1/checkouts", params={"id": checkout_id})

    # ============ PRODUCTS ============

    async def create_product(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST /v1/products"""
        return await self._request("POST", "/v1/products", json=payload)

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        """GET /v1/products?id=..."""
        return await self._request("GET", "/v1/products", params={"id": product_id})

    async def list_products(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """GET /v1/products/search"""
        params: Dict[str, Any] = {}
        if page:
            params["page"] = page
        if limit:
            params["limit"] = limit
        if search:
            params["search"] = search
        return await self._request("GET", "/v1/products/search", params=params)

    # ============ LICENSES ============

    async def activate_license(
        self,
        license_key: str,
        *,
        customer_email: Optional[str] = None,
        customer_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """POST /v1/licenses/activate"""
        body = _compact(
            {
                "licenseKey": license_key,
                "customerEmail": customer_email,
                "customerName": customer_name,
                "metadata": metadata,
            }
        )
        return await self._request("POST", "/v1/licenses/activate", json=body)

    async def deactivate_license(self, license_key: str, *, reason: Optional[str] = None) -> Dict[str, Any]:
        """POST /v1/licenses/deactivate"""
        body = _compact({"licenseKey": license_key, "reason": reason})
        return await self._request("POST", "/v1/licenses/deactivate", json=body)

    async def validate_license(self, license_key: str) -> Dict[str, Any]:
        """POST /v1/licenses/validate"""
        return await self._request("POST", "/v1/licenses/validate", json={"licenseKey": license_key})

    # ============ DISCOUNTS ============

    async def create_discount(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST /v1/discounts"""
        return await self._request("POST", "/v1/discounts", json=payload)

    async def get_discount(self, discount_id: str) -> Dict[str, Any]:
        """GET /v1/discounts?id=..."""
        return await self._request("GET", "/v1/discounts", params={"id": discount_id})

    async def delete_discount(self, discount_id: str) -> None:
        """DELETE /v1/discounts/{id}/delete"""
        await self._request("DELETE", f"/v1/discounts/{discount_id}/delete")

    # ============ SUBSCRIPTIONS ============

    async def get_subscription(self, subscription_id: str) -> Dict[str, Any]:
        """GET /v1/subscriptions?id=..."""
        return await self._request("GET", "/v1/subscriptions", params={"id": subscription_id})

    async def cancel_subscription(
        self,
        subscription_id: str,
        *,
        cancel_immediately: bool = False,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """POST /v1/subscriptions/{id}/cancel"""
        body = _compact({"cancelImmediately": cancel_immediately, "reason": reason})
        return await self._request("POST", f"/v1/subscriptions/{subscription_id}/cancel", json=body)

    # ------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.error("Provider request %s %s failed: %s", method, path, exc)
            raise ProviderApiError(
                str(exc) or "Network request failed",
                code="NETWORK_ERROR",
            ) from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {"data": data}

        if response.is_error:
            error = data.get("error") if isinstance(data.get("error"), dict) else {}
            message = error.get("message") or f"HTTP {response.status_code}: {response.reason_phrase}"
            logger.info(
                "Provider rejected %s %s with status %s", method, path, response.status_code
            )
            raise ProviderApiError(
                message,
                code=error.get("code"),
                status_code=response.status_code,
                details=error.get("details"),
            )

        return data["data"] if "data" in data else data


def build_entitlement_client(settings: Settings) -> Optional[EntitlementClient]:
    """Create the provider client, or None when no API key is configured."""
    if not settings.creem_api_key:
        logger.warning("CREEM_API_KEY is not set; license and product operations are disabled.")
        return None
    return EntitlementClient(
        settings.creem_api_key,
        test_mode=settings.creem_test_mode,
        base_url=settings.creem_base_url,
        timeout=settings.provider_timeout_seconds,
    )


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}
