"""Provider checkout session endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....core.dependencies import get_checkout_service
from ....domain.models import AuthenticatedUser
from ....services.checkout_service import CheckoutService
from ..dependencies import get_optional_user
from ..schemas.checkout_schemas import CreateCheckoutRequest, ProviderDataResponse

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("", response_model=ProviderDataResponse)
async def create_checkout(
    payload: CreateCheckoutRequest,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> ProviderDataResponse:
    """Open a checkout session and return its hosted URL."""
    checkout = await checkout_service.create_checkout(
        payload.model_dump(by_alias=True, exclude_none=True),
        actor=user,
    )
    return ProviderDataResponse(data=checkout)


@router.get("", response_model=ProviderDataResponse)
async def get_checkout(
    checkout_id: Optional[str] = Query(None, alias="checkoutId"),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> ProviderDataResponse:
    return ProviderDataResponse(data=await checkout_service.get_checkout(checkout_id))
