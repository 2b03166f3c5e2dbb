"""Subscription domain model linking users to their paid plan."""

from datetime import datetime, timezone
from typing import Optional

ACTIVE = "active"
TRIALING = "trialing"
CANCELED = "canceled"

# Statuses that grant access; at most one record per user may hold one.
ACCESS_STATUSES = (ACTIVE, TRIALING)

PLAN_DISPLAY_NAMES = {
    "starter": "Basic",
    "pro": "Pro",
    "business": "Business",
    "enterprise": "Enterprise",
}


def plan_display_name(plan: str) -> str:
    """Human-readable plan name, falling back to the raw identifier."""
    return PLAN_DISPLAY_NAMES.get(plan, plan)


class Subscription:
    """
    Subscription entity representing a user's plan.

    Attributes:
        id: Opaque unique identifier
        user_id: Owning user
        plan: Plan identifier (starter, pro, business, enterprise)
        status: Subscription status (trialing, active, canceled, or a provider value)
        billing_cycle: Billing cadence descriptor (monthly, yearly, ...)
        current_period_start: Start of current billing period
        current_period_end: End of current billing period
        cancel_at_period_end: Whether subscription will cancel at period end
        provider_subscription_id: Billing provider subscription ID, if known
        created_at: Subscription creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: str,
        user_id: str,
        plan: str,
        status: str,
        billing_cycle: str,
        current_period_start: datetime,
        current_period_end: datetime,
        cancel_at_period_end: bool = False,
        provider_subscription_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.plan = plan
        self.status = status
        self.billing_cycle = billing_cycle
        self.current_period_start = current_period_start
        self.current_period_end = current_period_end
        self.cancel_at_period_end = cancel_at_period_end
        self.provider_subscription_id = provider_subscription_id
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or self.created_at

    @property
    def plan_display_name(self) -> str:
        return plan_display_name(self.plan)

    def is_active(self) -> bool:
        """Check if subscription currently grants access."""
        return self.status in ACCESS_STATUSES

    def is_trial(self) -> bool:
        return self.status == TRIALING

    def __repr__(self) -> str:
        return (
            f"<Subscription id={self.id} user_id={self.user_id} plan={self.plan} "
            f"status={self.status} cancel_at_period_end={self.cancel_at_period_end}>"
        )
