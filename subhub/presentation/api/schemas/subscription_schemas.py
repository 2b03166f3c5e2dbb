"""Pydantic schemas for subscription API endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ....domain.models import Subscription
from .base import CamelModel


class SubscriptionResponse(CamelModel):
    """Response schema for subscription data."""

    id: str
    plan: str
    plan_display_name: str
    status: str
    billing_cycle: str
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool
    is_trial: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, subscription: Subscription) -> "SubscriptionResponse":
        return cls(
            id=subscription.id,
            plan=subscription.plan,
            plan_display_name=subscription.plan_display_name,
            status=subscription.status,
            billing_cycle=subscription.billing_cycle,
            current_period_start=subscription.current_period_start,
            current_period_end=subscription.current_period_end,
            cancel_at_period_end=subscription.cancel_at_period_end,
            is_trial=subscription.is_trial(),
            created_at=subscription.created_at,
        )


class CurrentSubscriptionResponse(CamelModel):
    success: bool = True
    subscription: Optional[SubscriptionResponse] = None


class SubscriptionHistoryResponse(CamelModel):
    success: bool = True
    subscriptions: List[SubscriptionResponse]


class CancelSubscriptionRequest(CamelModel):
    """Request schema for cancelling a subscription."""

    user_id: Optional[str] = None
    cancel_immediately: bool = False


class CancelledSubscription(CamelModel):
    id: str
    cancel_at_period_end: bool
    status: str


class CancelSubscriptionResponse(CamelModel):
    success: bool = True
    message: str
    already_cancelled: Optional[bool] = None
    subscription: CancelledSubscription


class TrialUpgradeRequest(CamelModel):
    """Request schema for the expired trial upgrade job."""

    grace_period_hours: Optional[int] = Field(None, description="Upgrade trials that ended within this many hours")
    dry_run: bool = False
    create_checkout: bool = Field(False, description="Open a provider checkout for each upgraded user")


class UpgradedTrialResponse(CamelModel):
    subscription_id: str
    user_id: str
    old_plan: str
    new_plan: str
    checkout_url: Optional[str] = None


class TrialUpgradeErrorResponse(CamelModel):
    subscription_id: str
    user_id: str
    error: str


class TrialUpgradeResponse(CamelModel):
    success: bool = True
    message: str
    upgraded: List[UpgradedTrialResponse]
    errors: List[TrialUpgradeErrorResponse]
    count: int
    dry_run: bool
