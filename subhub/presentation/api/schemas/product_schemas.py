"""Pydantic schemas for product API endpoints.

Product fields use the provider's snake_case names.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class CustomField(BaseModel):
    type: Literal["text", "checkbox"]
    key: str
    label: str
    optional: Optional[bool] = None
    text: Optional[Dict[str, int]] = None
    checkbox: Optional[Dict[str, str]] = None


class CreateProductRequest(BaseModel):
    """Request to create a product."""

    name: Optional[str] = Field(None, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    image_url: Optional[str] = None
    price: Optional[int] = Field(None, description="Price in cents, minimum 100")
    currency: Optional[str] = Field(None, description="Three-letter ISO currency code")
    billing_type: Optional[str] = Field(None, description="'recurring' or 'onetime'")
    billing_period: Optional[str] = Field(None, description="Required when recurring, e.g. 'every-month'")
    tax_mode: Optional[Literal["inclusive", "exclusive"]] = None
    tax_category: Optional[List[str]] = None
    default_success_url: Optional[str] = None
    custom_field: Optional[List[CustomField]] = Field(None, max_length=3)
    abandoned_cart_recovery_enabled: Optional[bool] = None


class ProductResponse(BaseModel):
    success: bool = True
    data: Any = None
