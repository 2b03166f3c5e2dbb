"""Administrative subscription maintenance endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....core.config import Settings
from ....core.dependencies import get_settings, get_subscription_service
from ....domain.models import AuthenticatedUser, RequestInfo
from ....services.subscription_service import SubscriptionService
from ..dependencies import get_request_info, require_admin_user
from ..schemas.checkout_schemas import ProviderDataResponse
from ..schemas.subscription_schemas import (
    TrialUpgradeErrorResponse,
    TrialUpgradeRequest,
    TrialUpgradeResponse,
    UpgradedTrialResponse,
)

router = APIRouter(prefix="/api/subscriptions", tags=["subscription-admin"])


@router.post(
    "/upgrade-trial",
    response_model=TrialUpgradeResponse,
    response_model_exclude_none=True,
)
async def upgrade_expired_trials(
    payload: TrialUpgradeRequest,
    _: AuthenticatedUser = Depends(require_admin_user),
    request_info: RequestInfo = Depends(get_request_info),
    settings: Settings = Depends(get_settings),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> TrialUpgradeResponse:
    """Upgrade trials that ended within the grace period to the starter plan."""
    grace_period_hours = payload.grace_period_hours
    if grace_period_hours is None:
        grace_period_hours = settings.trial_grace_period_hours

    report = await subscription_service.upgrade_expired_trials(
        grace_period_hours=grace_period_hours,
        dry_run=payload.dry_run,
        create_checkout=payload.create_checkout,
        request_info=request_info,
    )
    return TrialUpgradeResponse(
        message=report.message,
        upgraded=[
            UpgradedTrialResponse(
                subscription_id=item.subscription_id,
                user_id=item.user_id,
                old_plan=item.old_plan,
                new_plan=item.new_plan,
                checkout_url=item.checkout_url,
            )
            for item in report.upgraded
        ],
        errors=[
            TrialUpgradeErrorResponse(
                subscription_id=item.subscription_id,
                user_id=item.user_id,
                error=item.error,
            )
            for item in report.errors
        ],
        count=len(report.upgraded),
        dry_run=report.dry_run,
    )


@router.get("/provider", response_model=ProviderDataResponse)
async def get_provider_subscription(
    subscription_id: Optional[str] = Query(None, alias="subscriptionId"),
    _: AuthenticatedUser = Depends(require_admin_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> ProviderDataResponse:
    """Look up a subscription as the billing provider sees it."""
    return ProviderDataResponse(
        data=await subscription_service.get_provider_subscription(subscription_id),
    )
