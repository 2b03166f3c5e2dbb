from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from ..models import ActivityRecord, Subscription


class SubscriptionStore(Protocol):
    """Storage for subscription records, scoped by user and status."""

    def create(
        self,
        user_id: str,
        plan: str,
        status: str,
        billing_cycle: str,
        current_period_start: datetime,
        current_period_end: datetime,
        cancel_at_period_end: bool = False,
        provider_subscription_id: Optional[str] = None,
    ) -> Subscription:
        ...

    def get_by_id(self, subscription_id: str) -> Optional[Subscription]:
        ...

    def find_effective_subscriptions(self, user_id: str) -> List[Subscription]:
        ...

    def list_by_user_id(self, user_id: str) -> List[Subscription]:
        ...

    def list_expiring_trials(self, ended_after: datetime, ended_before: datetime) -> List[Subscription]:
        ...

    def update_subscription(self, subscription_id: str, patch: Dict[str, Any]) -> Subscription:
        ...


class ActivityStore(Protocol):
    """Append-only sink for audit records."""

    def append(self, record: ActivityRecord) -> None:
        ...
