"""Provider product catalogue endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....core.dependencies import get_product_service
from ....domain.models import AuthenticatedUser, RequestInfo
from ....services.product_service import ProductService
from ..dependencies import get_request_info, require_admin_user
from ..schemas.product_schemas import CreateProductRequest, ProductResponse

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post("", response_model=ProductResponse)
async def create_product(
    payload: CreateProductRequest,
    user: AuthenticatedUser = Depends(require_admin_user),
    request_info: RequestInfo = Depends(get_request_info),
    product_service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    """Create a new product at the billing provider."""
    product = await product_service.create_product(
        payload.model_dump(exclude_none=True),
        actor=user,
        request_info=request_info,
    )
    return ProductResponse(data=product)


@router.get("", response_model=ProductResponse)
async def get_products(
    product_id: Optional[str] = Query(None, alias="productId"),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    product_service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    """Get one product when productId is given, otherwise list products."""
    if product_id:
        return ProductResponse(data=await product_service.get_product(product_id))
    return ProductResponse(
        data=await product_service.list_products(page=page, limit=limit, search=search),
    )
