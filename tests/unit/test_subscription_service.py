"""
Tests for SubscriptionService.
"""

from datetime import datetime, timedelta, timezone

import pytest

from subhub.domain.exceptions import (
    NotFoundError,
    ProviderApiError,
    StorageError,
    SubscriptionError,
    ValidationError,
)
from subhub.domain.models import RequestInfo, Subscription
from subhub.services.subscription_service import SubscriptionService

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class StubSubscriptionStore:
    """Store returning a fixed candidate list, for states the database refuses to hold."""

    def __init__(self, candidates):
        self.candidates = candidates
        self.updates = []

    def find_effective_subscriptions(self, user_id):
        return [item for item in self.candidates if item.user_id == user_id]

    def update_subscription(self, subscription_id, patch):
        self.updates.append((subscription_id, patch))
        raise AssertionError("no write expected")


def _entity(subscription_id, created_at, status="active"):
    return Subscription(
        id=subscription_id,
        user_id="user-1",
        plan="pro",
        status=status,
        billing_cycle="monthly",
        current_period_start=created_at,
        current_period_end=created_at + timedelta(days=30),
        created_at=created_at,
    )


class TestGetEffectiveSubscription:
    """Test effective subscription resolution."""

    def test_returns_none_without_subscription(self, subscription_service):
        assert subscription_service.get_effective_subscription("user-1") is None

    def test_ignores_canceled_subscriptions(self, subscription_service, make_subscription):
        make_subscription(status="canceled")

        assert subscription_service.get_effective_subscription("user-1") is None

    def test_returns_trialing_subscription(self, subscription_service, make_subscription):
        trial = make_subscription(status="trialing", plan="starter")

        effective = subscription_service.get_effective_subscription("user-1")

        assert effective.id == trial.id
        assert effective.plan_display_name == "Basic"

    def test_picks_most_recent_when_several_grant_access(self, activity_logger, tasks, caplog):
        older = _entity("older", NOW - timedelta(days=10))
        newer = _entity("newer", NOW - timedelta(days=1), status="trialing")
        service = SubscriptionService(StubSubscriptionStore([newer, older]), activity_logger, tasks)

        with caplog.at_level("WARNING"):
            effective = service.get_effective_subscription("user-1")

        assert effective.id == "newer"
        assert "2 access-granting subscriptions" in caplog.text

    def test_selection_does_not_depend_on_store_order(self, activity_logger, tasks):
        older = _entity("older", NOW - timedelta(days=10))
        newer = _entity("newer", NOW - timedelta(days=1))
        service = SubscriptionService(StubSubscriptionStore([older, newer]), activity_logger, tasks)

        assert service.get_effective_subscription("user-1").id == "newer"

    def test_rows_without_access_are_ignored(self, activity_logger, tasks):
        canceled = _entity("canceled", NOW - timedelta(days=1), status="canceled")
        service = SubscriptionService(StubSubscriptionStore([canceled]), activity_logger, tasks)

        assert service.get_effective_subscription("user-1") is None

    def test_history_includes_canceled(self, subscription_service, make_subscription):
        make_subscription(status="canceled")
        make_subscription(status="active")

        history = subscription_service.list_subscriptions("user-1")

        assert [item.status for item in history] == ["active", "canceled"]


@pytest.mark.asyncio
class TestCancelSubscription:
    """Test SubscriptionService.cancel."""

    async def test_deferred_cancel_keeps_status(self, subscription_service, make_subscription, subscription_repository):
        subscription = make_subscription(status="trialing")

        result = await subscription_service.cancel("user-1")

        assert result.cancel_at_period_end is True
        assert result.status == "trialing"
        assert result.already_cancelled is False
        assert result.message == "Subscription will be cancelled at the end of the billing period"
        stored = subscription_repository.get_by_id(subscription.id)
        assert stored.cancel_at_period_end is True
        assert stored.status == "trialing"

    async def test_deferred_cancel_keeps_access(self, subscription_service, make_subscription):
        subscription = make_subscription()

        await subscription_service.cancel("user-1")

        assert subscription_service.get_effective_subscription("user-1").id == subscription.id

    async def test_immediate_cancel_revokes_access(self, subscription_service, make_subscription, subscription_repository):
        subscription = make_subscription()

        result = await subscription_service.cancel("user-1", cancel_immediately=True)

        assert result.status == "canceled"
        assert result.cancel_at_period_end is False
        assert result.message == "Subscription cancelled immediately"
        assert subscription_repository.get_by_id(subscription.id).status == "canceled"
        assert subscription_service.get_effective_subscription("user-1") is None

    async def test_immediate_cancel_clears_pending_flag(self, subscription_service, make_subscription):
        make_subscription(cancel_at_period_end=True)

        result = await subscription_service.cancel("user-1", cancel_immediately=True)

        assert result.status == "canceled"
        assert result.cancel_at_period_end is False

    async def test_repeated_deferred_cancel_writes_once(
        self, subscription_service, make_subscription, subscription_repository, monkeypatch, tasks, activity_store
    ):
        subscription = make_subscription(status="trialing")
        writes = []
        update_subscription = subscription_repository.update_subscription

        def counting_update(subscription_id, patch):
            writes.append((subscription_id, patch))
            return update_subscription(subscription_id, patch)

        monkeypatch.setattr(subscription_repository, "update_subscription", counting_update)

        first = await subscription_service.cancel("user-1")
        second = await subscription_service.cancel("user-1")
        third = await subscription_service.cancel("user-1")
        await tasks.drain()

        assert writes == [(subscription.id, {"cancel_at_period_end": True})]
        assert first.already_cancelled is False
        for repeat in (second, third):
            assert repeat.already_cancelled is True
            assert repeat.subscription_id == subscription.id
            assert repeat.status == "trialing"
            assert repeat.cancel_at_period_end is True
            assert repeat.message == "Subscription is already set to cancel at period end"
        assert [record.action for record in activity_store.records] == ["user.subscription.cancelled"]

    async def test_missing_user_id(self, subscription_service):
        with pytest.raises(ValidationError):
            await subscription_service.cancel("")

    async def test_no_effective_subscription(self, subscription_service, make_subscription):
        make_subscription(status="canceled")

        with pytest.raises(NotFoundError) as exc_info:
            await subscription_service.cancel("user-1")

        assert exc_info.value.message == "No active subscription found"
        assert exc_info.value.status_code == 404

    async def test_storage_failure_is_surfaced(
        self, subscription_service, make_subscription, subscription_repository, monkeypatch, tasks, activity_store
    ):
        make_subscription()

        def fail(*args, **kwargs):
            raise StorageError("Failed to update subscription", details="disk I/O error")

        monkeypatch.setattr(subscription_repository, "update_subscription", fail)

        with pytest.raises(StorageError):
            await subscription_service.cancel("user-1")
        await tasks.drain()

        assert activity_store.records == []

    async def test_audit_entry_recorded(self, subscription_service, make_subscription, tasks, activity_store):
        subscription = make_subscription(plan="business")
        info = RequestInfo(ip_address="203.0.113.9", user_agent="pytest")

        await subscription_service.cancel("user-1", request_info=info)
        await tasks.drain()

        assert len(activity_store.records) == 1
        record = activity_store.records[0]
        assert record.action == "user.subscription.cancelled"
        assert record.resource_type == "subscription"
        assert record.resource_id == subscription.id
        assert record.user_id == "user-1"
        assert record.ip_address == "203.0.113.9"
        assert record.metadata == {
            "plan": "business",
            "cancel_immediately": False,
            "cancel_at_period_end": True,
        }

    async def test_audit_failure_does_not_fail_cancel(self, subscription_service, make_subscription, tasks, activity_store):
        make_subscription()
        activity_store.fail = True

        result = await subscription_service.cancel("user-1")
        await tasks.drain()

        assert result.cancel_at_period_end is True

    async def test_reconciles_with_provider(self, subscription_service, make_subscription, tasks, entitlement_client):
        make_subscription(provider_subscription_id="sub_123")

        await subscription_service.cancel("user-1", cancel_immediately=True)
        await tasks.drain()

        assert entitlement_client.calls_to("cancel_subscription") == [
            ("cancel_subscription", ("sub_123",), {"cancel_immediately": True}),
        ]

    async def test_skips_provider_without_provider_id(self, subscription_service, make_subscription, tasks, entitlement_client):
        make_subscription()

        await subscription_service.cancel("user-1")
        await tasks.drain()

        assert entitlement_client.calls == []

    async def test_provider_failure_does_not_fail_cancel(
        self, subscription_service, make_subscription, tasks, entitlement_client, subscription_repository, caplog
    ):
        subscription = make_subscription(provider_subscription_id="sub_123")
        entitlement_client.errors["cancel_subscription"] = ProviderApiError("Upstream unavailable", status_code=502)

        with caplog.at_level("WARNING"):
            result = await subscription_service.cancel("user-1")
            await tasks.drain()

        assert result.cancel_at_period_end is True
        assert subscription_repository.get_by_id(subscription.id).cancel_at_period_end is True
        assert "non-critical" in caplog.text

    async def test_works_without_provider(self, subscription_repository, activity_logger, tasks, make_subscription):
        service = SubscriptionService(subscription_repository, activity_logger, tasks, None)
        make_subscription(provider_subscription_id="sub_123")

        result = await service.cancel("user-1", cancel_immediately=True)

        assert result.status == "canceled"


@pytest.mark.asyncio
class TestUpgradeExpiredTrials:
    """Test the expired trial upgrade job."""

    async def test_upgrades_trials_inside_grace_period(
        self, subscription_service, make_subscription, subscription_repository, tasks, activity_store
    ):
        expired = make_subscription(
            user_id="user-1",
            status="trialing",
            plan="pro",
            current_period_start=NOW - timedelta(days=14),
            current_period_end=NOW - timedelta(hours=2),
        )
        make_subscription(
            user_id="user-2",
            status="trialing",
            current_period_start=NOW - timedelta(days=20),
            current_period_end=NOW - timedelta(hours=48),
        )
        make_subscription(
            user_id="user-3",
            status="trialing",
            current_period_start=NOW - timedelta(days=1),
            current_period_end=NOW + timedelta(days=6),
        )

        report = await subscription_service.upgrade_expired_trials(grace_period_hours=24, now=NOW)
        await tasks.drain()

        assert report.found == 1
        assert [item.subscription_id for item in report.upgraded] == [expired.id]
        assert report.upgraded[0].old_plan == "pro"
        assert report.upgraded[0].new_plan == "starter"
        assert report.errors == []

        stored = subscription_repository.get_by_id(expired.id)
        assert stored.status == "active"
        assert stored.plan == "starter"
        assert stored.current_period_start == NOW
        assert stored.current_period_end == datetime(2026, 4, 15, 12, 0, tzinfo=timezone.utc)

        actions = sorted(record.action for record in activity_store.records)
        assert actions == ["subscription.trial_upgrade.batch", "subscription.trial_upgraded"]

    async def test_dry_run_changes_nothing(self, subscription_service, make_subscription, subscription_repository):
        trial = make_subscription(
            status="trialing",
            current_period_start=NOW - timedelta(days=14),
            current_period_end=NOW - timedelta(hours=1),
        )

        report = await subscription_service.upgrade_expired_trials(dry_run=True, now=NOW)

        assert report.dry_run is True
        assert len(report.upgraded) == 1
        assert report.message == "Found 1 trials that would be upgraded"
        assert subscription_repository.get_by_id(trial.id).status == "trialing"

    async def test_reports_per_record_failures(
        self, subscription_service, make_subscription, subscription_repository, monkeypatch
    ):
        trial = make_subscription(
            status="trialing",
            current_period_start=NOW - timedelta(days=14),
            current_period_end=NOW - timedelta(hours=1),
        )

        def fail(*args, **kwargs):
            raise StorageError("Failed to update subscription", details="database is locked")

        monkeypatch.setattr(subscription_repository, "update_subscription", fail)

        report = await subscription_service.upgrade_expired_trials(now=NOW)

        assert report.upgraded == []
        assert len(report.errors) == 1
        assert report.errors[0].subscription_id == trial.id
        assert report.errors[0].error == "database is locked"

    async def test_no_trials_found(self, subscription_service):
        report = await subscription_service.upgrade_expired_trials(now=NOW)

        assert report.found == 0
        assert report.message == "No expiring trials found"

    async def test_negative_grace_period_rejected(self, subscription_service):
        with pytest.raises(ValidationError):
            await subscription_service.upgrade_expired_trials(grace_period_hours=-1)

    async def test_trial_pending_cancellation_is_not_upgraded(
        self, subscription_service, make_subscription, subscription_repository, tasks
    ):
        trial = make_subscription(
            status="trialing",
            current_period_start=NOW - timedelta(days=14),
            current_period_end=NOW + timedelta(days=1),
        )
        await subscription_service.cancel("user-1")
        subscription_repository.update_subscription(trial.id, {"current_period_end": NOW - timedelta(hours=1)})

        report = await subscription_service.upgrade_expired_trials(now=NOW)
        await tasks.drain()

        stored = subscription_repository.get_by_id(trial.id)
        assert report.found == 0
        assert report.upgraded == []
        assert stored.status == "trialing"
        assert stored.plan == "pro"
        assert stored.cancel_at_period_end is True


@pytest.mark.asyncio
class TestTrialUpgradeCheckout:
    """Test the optional provider checkout opened for upgraded trials."""

    @pytest.fixture
    def expired_trial(self, make_subscription):
        return make_subscription(
            status="trialing",
            current_period_start=NOW - timedelta(days=14),
            current_period_end=NOW - timedelta(hours=1),
        )

    @pytest.fixture
    def service(self, subscription_repository, activity_logger, tasks, entitlement_client):
        return SubscriptionService(
            subscription_repository,
            activity_logger,
            tasks,
            entitlement_client,
            upgrade_product_id="prod_basic",
            app_url="https://app.example.com/",
        )

    async def test_checkout_url_reported(self, service, expired_trial, entitlement_client, tasks, activity_store):
        entitlement_client.responses["create_checkout"] = {"id": "ch_1", "checkoutUrl": "https://pay.example/ch_1"}

        report = await service.upgrade_expired_trials(create_checkout=True, now=NOW)
        await tasks.drain()

        assert report.upgraded[0].checkout_url == "https://pay.example/ch_1"
        assert entitlement_client.calls_to("create_checkout") == [
            (
                "create_checkout",
                (
                    {
                        "productId": "prod_basic",
                        "successUrl": "https://app.example.com/success?plan=basic",
                        "cancelUrl": "https://app.example.com/cancel",
                        "metadata": {"user_id": "user-1", "subscription_id": expired_trial.id},
                    },
                ),
                {},
            )
        ]
        assert "subscription.trial_upgrade.checkout_created" in [record.action for record in activity_store.records]

    async def test_checkout_not_requested(self, service, expired_trial, entitlement_client):
        report = await service.upgrade_expired_trials(now=NOW)

        assert report.upgraded[0].checkout_url is None
        assert entitlement_client.calls == []

    async def test_checkout_skipped_without_product(self, subscription_service, expired_trial, entitlement_client):
        report = await subscription_service.upgrade_expired_trials(create_checkout=True, now=NOW)

        assert len(report.upgraded) == 1
        assert report.upgraded[0].checkout_url is None
        assert entitlement_client.calls == []

    async def test_checkout_failure_keeps_upgrade(
        self, service, expired_trial, entitlement_client, subscription_repository
    ):
        entitlement_client.errors["create_checkout"] = ProviderApiError("Product archived", status_code=409)

        report = await service.upgrade_expired_trials(create_checkout=True, now=NOW)

        assert report.errors == []
        assert report.upgraded[0].checkout_url is None
        assert subscription_repository.get_by_id(expired_trial.id).status == "active"


@pytest.mark.asyncio
class TestProviderSubscription:
    """Test SubscriptionService.get_provider_subscription."""

    async def test_returns_provider_payload(self, subscription_service, entitlement_client):
        entitlement_client.responses["get_subscription"] = {"id": "sub_123", "status": "active"}

        result = await subscription_service.get_provider_subscription("sub_123")

        assert result == {"id": "sub_123", "status": "active"}
        assert entitlement_client.calls == [("get_subscription", ("sub_123",), {})]

    async def test_requires_id(self, subscription_service, entitlement_client):
        with pytest.raises(ValidationError):
            await subscription_service.get_provider_subscription("")

        assert entitlement_client.calls == []

    async def test_provider_error_mapped(self, subscription_service, entitlement_client):
        entitlement_client.errors["get_subscription"] = ProviderApiError("Not found", status_code=404)

        with pytest.raises(SubscriptionError) as exc_info:
            await subscription_service.get_provider_subscription("sub_missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "SUBSCRIPTION_ERROR"

    async def test_unconfigured_provider(self, subscription_repository, activity_logger, tasks):
        service = SubscriptionService(subscription_repository, activity_logger, tasks, None)

        with pytest.raises(SubscriptionError) as exc_info:
            await service.get_provider_subscription("sub_123")

        assert exc_info.value.status_code == 503
