"""Pydantic schemas for license API endpoints."""

from typing import Any, Dict, Optional

from .base import CamelModel


class LicenseOperationRequest(CamelModel):
    """Request schema shared by the activate, deactivate and validate actions."""

    license_key: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    reason: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class LicenseOperationResponse(CamelModel):
    success: bool = True
    data: Any = None
