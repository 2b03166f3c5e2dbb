"""License key operations, selected by the ``action`` query parameter."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....core.dependencies import get_license_service
from ....domain.models import AuthenticatedUser, LicenseAction, LicenseCommand, RequestInfo
from ....services.license_service import LicenseService
from ..dependencies import get_optional_user, get_request_info
from ..schemas.license_schemas import LicenseOperationRequest, LicenseOperationResponse

router = APIRouter(prefix="/api/licenses", tags=["licenses"])


@router.post("", response_model=LicenseOperationResponse)
async def license_operation(
    payload: LicenseOperationRequest,
    action: Optional[str] = Query(None, description="activate, deactivate or validate"),
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    request_info: RequestInfo = Depends(get_request_info),
    license_service: LicenseService = Depends(get_license_service),
) -> LicenseOperationResponse:
    command = LicenseCommand(
        action=LicenseAction.parse(action),
        license_key=payload.license_key,
        customer_email=payload.customer_email,
        customer_name=payload.customer_name,
        reason=payload.reason,
        metadata=payload.metadata,
    )
    data = await license_service.execute(command, actor=user, request_info=request_info)
    return LicenseOperationResponse(data=data)
