"""API router for user subscription management."""

from fastapi import APIRouter, Depends

from ....domain.exceptions import AuthorizationError, ValidationError
from ....domain.models import AuthenticatedUser, RequestInfo
from ....core.dependencies import get_subscription_service
from ....services.subscription_service import SubscriptionService
from ..dependencies import get_current_user, get_request_info
from ..schemas.subscription_schemas import (
    CancelledSubscription,
    CancelSubscriptionRequest,
    CancelSubscriptionResponse,
    CurrentSubscriptionResponse,
    SubscriptionHistoryResponse,
    SubscriptionResponse,
)

router = APIRouter(prefix="/api/user/subscription", tags=["user-subscription"])


@router.get("", response_model=CurrentSubscriptionResponse)
async def get_current_subscription(
    user: AuthenticatedUser = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> CurrentSubscriptionResponse:
    """Get the caller's active or trialing subscription."""
    subscription = subscription_service.get_effective_subscription(user.user_id)
    return CurrentSubscriptionResponse(
        subscription=SubscriptionResponse.from_entity(subscription) if subscription else None,
    )


@router.get("/history", response_model=SubscriptionHistoryResponse)
async def get_subscription_history(
    user: AuthenticatedUser = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionHistoryResponse:
    """List every subscription the caller has held, newest first."""
    subscriptions = subscription_service.list_subscriptions(user.user_id)
    return SubscriptionHistoryResponse(
        subscriptions=[SubscriptionResponse.from_entity(item) for item in subscriptions],
    )


@router.post(
    "/cancel",
    response_model=CancelSubscriptionResponse,
    response_model_exclude_none=True,
)
async def cancel_subscription(
    payload: CancelSubscriptionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    request_info: RequestInfo = Depends(get_request_info),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> CancelSubscriptionResponse:
    """Cancel the subscription at period end, or immediately when requested."""
    if not payload.user_id:
        raise ValidationError("User ID is required")
    if not user.can_act_for(payload.user_id):
        raise AuthorizationError("Cannot cancel another user's subscription")

    result = await subscription_service.cancel(
        payload.user_id,
        payload.cancel_immediately,
        request_info=request_info,
    )
    return CancelSubscriptionResponse(
        message=result.message,
        already_cancelled=True if result.already_cancelled else None,
        subscription=CancelledSubscription(
            id=result.subscription_id,
            cancel_at_period_end=result.cancel_at_period_end,
            status=result.status,
        ),
    )
