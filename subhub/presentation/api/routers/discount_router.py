"""Provider discount code endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....core.dependencies import get_discount_service
from ....domain.models import AuthenticatedUser, RequestInfo
from ....services.discount_service import DiscountService
from ..dependencies import get_request_info, require_admin_user
from ..schemas.checkout_schemas import CreateDiscountRequest, MessageResponse, ProviderDataResponse

router = APIRouter(prefix="/api/discounts", tags=["discounts"])


@router.post("", response_model=ProviderDataResponse)
async def create_discount(
    payload: CreateDiscountRequest,
    user: AuthenticatedUser = Depends(require_admin_user),
    request_info: RequestInfo = Depends(get_request_info),
    discount_service: DiscountService = Depends(get_discount_service),
) -> ProviderDataResponse:
    """Create a discount code at the billing provider."""
    discount = await discount_service.create_discount(
        payload.model_dump(by_alias=True, exclude_none=True),
        actor=user,
        request_info=request_info,
    )
    return ProviderDataResponse(data=discount)


@router.get("", response_model=ProviderDataResponse)
async def get_discount(
    discount_id: Optional[str] = Query(None, alias="discountId"),
    discount_service: DiscountService = Depends(get_discount_service),
) -> ProviderDataResponse:
    return ProviderDataResponse(data=await discount_service.get_discount(discount_id))


@router.delete("", response_model=MessageResponse)
async def delete_discount(
    discount_id: Optional[str] = Query(None, alias="discountId"),
    user: AuthenticatedUser = Depends(require_admin_user),
    request_info: RequestInfo = Depends(get_request_info),
    discount_service: DiscountService = Depends(get_discount_service),
) -> MessageResponse:
    await discount_service.delete_discount(discount_id, actor=user, request_info=request_info)
    return MessageResponse(message="Discount code deleted successfully")
