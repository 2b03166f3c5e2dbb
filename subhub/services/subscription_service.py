"""Service for subscription lifecycle management."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ..domain.exceptions import (
    NotFoundError,
    ProviderApiError,
    StorageError,
    SubscriptionError,
    ValidationError,
)
from ..domain.models import ActivityRecord, RequestInfo, Subscription
from ..domain.models.subscription import ACTIVE, CANCELED
from ..domain.ports.persistence import SubscriptionStore
from .activity_logger import ActivityLogger
from .background import DetachedTasks
from .entitlement_client import EntitlementClient

logger = logging.getLogger(__name__)

TRIAL_UPGRADE_PLAN = "starter"


@dataclass(slots=True)
class CancellationResult:
    subscription_id: str
    status: str
    cancel_at_period_end: bool
    cancel_immediately: bool
    already_cancelled: bool = False

    @property
    def message(self) -> str:
        if self.already_cancelled:
            return "Subscription is already set to cancel at period end"
        if self.cancel_immediately:
            return "Subscription cancelled immediately"
        return "Subscription will be cancelled at the end of the billing period"


@dataclass(slots=True)
class UpgradedTrial:
    subscription_id: str
    user_id: str
    old_plan: str
    new_plan: str
    checkout_url: Optional[str] = None


@dataclass(slots=True)
class TrialUpgradeFailure:
    subscription_id: str
    user_id: str
    error: str


@dataclass(slots=True)
class TrialUpgradeReport:
    found: int
    dry_run: bool
    upgraded: List[UpgradedTrial] = field(default_factory=list)
    errors: List[TrialUpgradeFailure] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.found == 0:
            return "No expiring trials found"
        if self.dry_run:
            return f"Found {self.found} trials that would be upgraded"
        return f"Upgraded {len(self.upgraded)} of {self.found} expiring trials"


class SubscriptionService:
    """Service for managing user subscriptions."""

    def __init__(
        self,
        subscription_repository: SubscriptionStore,
        activity_logger: ActivityLogger,
        tasks: DetachedTasks,
        entitlement_client: Optional[EntitlementClient] = None,
        *,
        upgrade_product_id: Optional[str] = None,
        app_url: str = "http://localhost:3000",
    ):
        self.subscription_repository = subscription_repository
        self.activity_logger = activity_logger
        self._tasks = tasks
        self._client = entitlement_client
        self._upgrade_product_id = upgrade_product_id
        self._app_url = app_url.rstrip("/")

    def get_effective_subscription(self, user_id: str) -> Optional[Subscription]:
        """
        Get the subscription that currently grants the user access.

        Args:
            user_id: User ID

        Returns:
            The most recently created active or trialing subscription, None if there is none
        """
        candidates = [
            subscription
            for subscription in self.subscription_repository.find_effective_subscriptions(user_id)
            if subscription.is_active()
        ]
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(
                "User %s has %s access-granting subscriptions; using the most recent.",
                user_id,
                len(candidates),
            )
        return max(candidates, key=lambda subscription: subscription.created_at)

    def list_subscriptions(self, user_id: str) -> List[Subscription]:
        """
        List all subscriptions for a user, newest first.

        Args:
            user_id: User ID

        Returns:
            List of Subscription entities, including canceled ones
        """
        return self.subscription_repository.list_by_user_id(user_id)

    async def get_provider_subscription(self, provider_subscription_id: Optional[str]) -> Dict[str, Any]:
        """
        Fetch the provider's view of a subscription.

        Args:
            provider_subscription_id: Billing provider subscription ID

        Returns:
            Subscription payload returned by the provider

        Raises:
            ValidationError: If the ID is missing
            SubscriptionError: If the provider is not configured or rejects the lookup
        """
        if not provider_subscription_id:
            raise ValidationError("subscriptionId is required")
        if self._client is None:
            raise SubscriptionError.not_configured()
        try:
            return await self._client.get_subscription(provider_subscription_id)
        except ProviderApiError as exc:
            raise SubscriptionError.from_provider(exc) from exc

    async def cancel(
        self,
        user_id: str,
        cancel_immediately: bool = False,
        *,
        request_info: Optional[RequestInfo] = None,
    ) -> CancellationResult:
        """
        Cancel a user's effective subscription.

        Deferred cancellation keeps the status and sets cancel_at_period_end;
        immediate cancellation moves the status to canceled and clears the flag.

        Args:
            user_id: User ID
            cancel_immediately: End access now instead of at period end
            request_info: Caller IP and user agent for the audit trail

        Returns:
            CancellationResult describing the stored state

        Raises:
            ValidationError: If user_id is missing
            NotFoundError: If the user has no active or trialing subscription
            StorageError: If the update could not be persisted
        """
        if not user_id:
            raise ValidationError("User ID is required")

        subscription = self.get_effective_subscription(user_id)
        if subscription is None:
            raise NotFoundError("No active subscription found")

        if subscription.cancel_at_period_end and not cancel_immediately:
            return CancellationResult(
                subscription_id=subscription.id,
                status=subscription.status,
                cancel_at_period_end=True,
                cancel_immediately=False,
                already_cancelled=True,
            )

        if cancel_immediately:
            patch = {"status": CANCELED, "cancel_at_period_end": False}
        else:
            patch = {"cancel_at_period_end": True}

        updated = self.subscription_repository.update_subscription(subscription.id, patch)
        logger.info(
            "Subscription %s for user %s cancelled (immediately=%s)",
            updated.id,
            user_id,
            cancel_immediately,
        )

        self._reconcile_with_provider(subscription, cancel_immediately)

        self.activity_logger.record(
            ActivityRecord.build(
                "user.subscription.cancelled",
                resource_type="subscription",
                resource_id=updated.id,
                user_id=user_id,
                request_info=request_info,
                metadata={
                    "plan": updated.plan,
                    "cancel_immediately": cancel_immediately,
                    "cancel_at_period_end": updated.cancel_at_period_end,
                },
            )
        )

        return CancellationResult(
            subscription_id=updated.id,
            status=updated.status,
            cancel_at_period_end=updated.cancel_at_period_end,
            cancel_immediately=cancel_immediately,
        )

    async def upgrade_expired_trials(
        self,
        *,
        grace_period_hours: int = 24,
        dry_run: bool = False,
        create_checkout: bool = False,
        now: Optional[datetime] = None,
        request_info: Optional[RequestInfo] = None,
    ) -> TrialUpgradeReport:
        """
        Move trials that ended within the grace period onto the paid starter plan.

        Trials scheduled to cancel at period end are not upgraded.

        Args:
            grace_period_hours: How far back a trial end may lie
            dry_run: Only report what would be upgraded
            create_checkout: Open a provider checkout for each upgraded user
            now: Reference time, defaults to the current UTC time
            request_info: Caller IP and user agent for the audit trail

        Returns:
            TrialUpgradeReport with upgraded records and per-record failures

        Raises:
            ValidationError: If grace_period_hours is negative
            StorageError: If expiring trials could not be queried
        """
        if grace_period_hours < 0:
            raise ValidationError("gracePeriodHours must not be negative")

        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=grace_period_hours)
        trials = [
            trial
            for trial in self.subscription_repository.list_expiring_trials(ended_after=cutoff, ended_before=now)
            if not trial.cancel_at_period_end
        ]
        report = TrialUpgradeReport(found=len(trials), dry_run=dry_run)

        for trial in trials:
            upgraded = UpgradedTrial(
                subscription_id=trial.id,
                user_id=trial.user_id,
                old_plan=trial.plan,
                new_plan=TRIAL_UPGRADE_PLAN,
            )
            if dry_run:
                report.upgraded.append(upgraded)
                continue

            try:
                self.subscription_repository.update_subscription(
                    trial.id,
                    {
                        "plan": TRIAL_UPGRADE_PLAN,
                        "status": ACTIVE,
                        "current_period_start": now,
                        "current_period_end": _add_one_month(now),
                        "cancel_at_period_end": False,
                    },
                )
            except StorageError as exc:
                logger.error("Failed to upgrade trial subscription %s: %s", trial.id, exc.details or exc)
                report.errors.append(
                    TrialUpgradeFailure(
                        subscription_id=trial.id,
                        user_id=trial.user_id,
                        error=str(exc.details or exc.message),
                    )
                )
                continue

            if create_checkout:
                upgraded.checkout_url = await self._open_upgrade_checkout(trial, request_info)

            self.activity_logger.record(
                ActivityRecord.build(
                    "subscription.trial_upgraded",
                    resource_type="subscription",
                    resource_id=trial.id,
                    user_id=trial.user_id,
                    request_info=request_info,
                    metadata={
                        "old_plan": trial.plan,
                        "new_plan": TRIAL_UPGRADE_PLAN,
                        "auto_upgrade": True,
                    },
                )
            )
            report.upgraded.append(upgraded)
            logger.info("Upgraded trial subscription %s for user %s", trial.id, trial.user_id)

        self.activity_logger.record(
            ActivityRecord.build(
                "subscription.trial_upgrade.batch",
                resource_type="subscription",
                request_info=request_info,
                metadata={
                    "total_found": report.found,
                    "upgraded_count": len(report.upgraded),
                    "error_count": len(report.errors),
                    "grace_period_hours": grace_period_hours,
                    "dry_run": dry_run,
                    "create_checkout": create_checkout,
                },
            )
        )
        return report

    async def _open_upgrade_checkout(
        self,
        trial: Subscription,
        request_info: Optional[RequestInfo],
    ) -> Optional[str]:
        if self._client is None:
            logger.warning("Provider is not configured; skipping checkout for subscription %s", trial.id)
            return None
        if not self._upgrade_product_id:
            logger.warning("CREEM_BASIC_PRODUCT_ID is not set; skipping checkout for subscription %s", trial.id)
            return None

        try:
            checkout = await self._client.create_checkout(
                {
                    "productId": self._upgrade_product_id,
                    "successUrl": f"{self._app_url}/success?plan=basic",
                    "cancelUrl": f"{self._app_url}/cancel",
                    "metadata": {"user_id": trial.user_id, "subscription_id": trial.id},
                }
            )
        except ProviderApiError as exc:
            logger.warning("Failed to create checkout for subscription %s: %s", trial.id, exc.message)
            return None

        checkout_url = checkout.get("checkoutUrl")
        self.activity_logger.record(
            ActivityRecord.build(
                "subscription.trial_upgrade.checkout_created",
                resource_type="subscription",
                resource_id=trial.id,
                user_id=trial.user_id,
                request_info=request_info,
                metadata={
                    "old_plan": trial.plan,
                    "new_plan": TRIAL_UPGRADE_PLAN,
                    "checkout_url": checkout_url,
                },
            )
        )
        return checkout_url

    def _reconcile_with_provider(self, subscription: Subscription, cancel_immediately: bool) -> None:
        if self._client is None or not subscription.provider_subscription_id:
            return
        self._tasks.spawn(
            self._cancel_with_provider(subscription.provider_subscription_id, cancel_immediately),
            name=f"provider-cancel:{subscription.id}",
        )

    async def _cancel_with_provider(self, provider_subscription_id: str, cancel_immediately: bool) -> None:
        try:
            await self._client.cancel_subscription(
                provider_subscription_id,
                cancel_immediately=cancel_immediately,
            )
        except ProviderApiError as exc:
            logger.warning(
                "Failed to cancel subscription %s with provider (non-critical): %s",
                provider_subscription_id,
                exc.message,
            )


def _add_one_month(value: datetime) -> datetime:
    year = value.year + value.month // 12
    month = value.month % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
