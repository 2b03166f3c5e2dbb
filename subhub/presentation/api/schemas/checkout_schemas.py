"""Pydantic schemas for checkout and discount endpoints."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from .base import CamelModel


class CreateCheckoutRequest(CamelModel):
    """Request to open a provider checkout session."""

    product_id: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    discount_code: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)


class CreateDiscountRequest(CamelModel):
    """Request to create a discount code."""

    code: Optional[str] = None
    type: Optional[Literal["percentage", "fixed"]] = None
    value: Optional[float] = None
    description: Optional[str] = None
    max_uses: Optional[int] = Field(None, ge=1)
    expires_at: Optional[str] = None
    product_ids: Optional[List[str]] = None
    min_amount: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


class ProviderDataResponse(CamelModel):
    success: bool = True
    data: Any = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str
