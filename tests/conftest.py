"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from subhub.core.app_factory import create_application
from subhub.core.config import Settings
from subhub.core.container import build_container
from subhub.infrastructure.repositories.subscription_repository import SubscriptionRepository
from subhub.services.activity_logger import ActivityLogger
from subhub.services.background import DetachedTasks
from subhub.services.checkout_service import CheckoutService
from subhub.services.discount_service import DiscountService
from subhub.services.license_service import LicenseService
from subhub.services.product_service import ProductService
from subhub.services.subscription_service import SubscriptionService


class FakeEntitlementClient:
    """In-memory stand-in for EntitlementClient that records every call."""

    def __init__(self):
        self.calls = []
        self.responses = {}
        self.errors = {}
        self.closed = False

    async def _call(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if name in self.errors:
            raise self.errors[name]
        return self.responses.get(name, {})

    async def create_checkout(self, payload):
        return await self._call("create_checkout", payload)

    async def get_checkout(self, checkout_id):
        return await self._call("get_checkout", checkout_id)

    async def create_product(self, payload):
        return await self._call("create_product", payload)

    async def get_product(self, product_id):
        return await self._call("get_product", product_id)

    async def list_products(self, page=None, limit=None, search=None):
        return await self._call("list_products", page=page, limit=limit, search=search)

    async def activate_license(self, license_key, **kwargs):
        return await self._call("activate_license", license_key, **kwargs)

    async def deactivate_license(self, license_key, **kwargs):
        return await self._call("deactivate_license", license_key, **kwargs)

    async def validate_license(self, license_key):
        return await self._call("validate_license", license_key)

    async def create_discount(self, payload):
        return await self._call("create_discount", payload)

    async def get_discount(self, discount_id):
        return await self._call("get_discount", discount_id)

    async def delete_discount(self, discount_id):
        await self._call("delete_discount", discount_id)

    async def get_subscription(self, subscription_id):
        return await self._call("get_subscription", subscription_id)

    async def cancel_subscription(self, subscription_id, **kwargs):
        return await self._call("cancel_subscription", subscription_id, **kwargs)

    async def aclose(self):
        self.closed = True

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]


class RecordingActivityStore:
    """Activity store that keeps records in a list, optionally failing."""

    def __init__(self, fail=False):
        self.records = []
        self.fail = fail

    def append(self, record):
        if self.fail:
            raise RuntimeError("activity_logs table is unavailable")
        self.records.append(record)


@pytest.fixture
def db_path(tmp_path):
    """Fixture for a throwaway SQLite database path."""
    return str(tmp_path / "subhub.db")


@pytest.fixture
def subscription_repository(db_path):
    """Fixture for SubscriptionRepository."""
    return SubscriptionRepository(db_path)


@pytest.fixture
def activity_store():
    return RecordingActivityStore()


@pytest.fixture
def tasks():
    return DetachedTasks()


@pytest.fixture
def activity_logger(activity_store, tasks):
    return ActivityLogger(activity_store, tasks)


@pytest.fixture
def entitlement_client():
    return FakeEntitlementClient()


@pytest.fixture
def subscription_service(subscription_repository, activity_logger, tasks, entitlement_client):
    return SubscriptionService(subscription_repository, activity_logger, tasks, entitlement_client)


@pytest.fixture
def license_service(entitlement_client, activity_logger):
    return LicenseService(entitlement_client, activity_logger)


@pytest.fixture
def product_service(entitlement_client, activity_logger):
    return ProductService(entitlement_client, activity_logger)


@pytest.fixture
def checkout_service(entitlement_client):
    return CheckoutService(entitlement_client)


@pytest.fixture
def discount_service(entitlement_client, activity_logger):
    return DiscountService(entitlement_client, activity_logger)


@pytest.fixture
def make_subscription(subscription_repository):
    """Factory fixture that stores a subscription with sensible defaults."""

    def _make(user_id="user-1", **overrides):
        start = datetime.now(timezone.utc).replace(microsecond=0)
        values = {
            "plan": "pro",
            "status": "active",
            "billing_cycle": "monthly",
            "current_period_start": start,
            "current_period_end": start + timedelta(days=30),
            "cancel_at_period_end": False,
            "provider_subscription_id": None,
        }
        values.update(overrides)
        return subscription_repository.create(user_id=user_id, **values)

    return _make


@pytest.fixture
def settings(monkeypatch, tmp_path):
    """Settings pointing at a temporary database with no real provider."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    for key in (
        "CREEM_API_KEY",
        "CREEM_BASE_URL",
        "CREEM_TEST_MODE",
        "APP_ENV",
        "PROVIDER_TIMEOUT_SECONDS",
        "TRIAL_GRACE_PERIOD_HOURS",
        "CORS_ALLOW_ORIGINS",
        "JWT_ALGORITHM",
        "JWT_EXPIRATION_HOURS",
        "CREEM_BASIC_PRODUCT_ID",
        "APP_URL",
    ):
        monkeypatch.delenv(key, raising=False)
    return Settings()


@pytest.fixture
def container(settings, entitlement_client):
    return build_container(settings, entitlement_client=entitlement_client)


@pytest.fixture
def api_client(container):
    """TestClient running the full application lifespan."""
    with TestClient(create_application(container=container)) as client:
        yield client


@pytest.fixture
def auth_headers(container):
    """Build bearer headers for a user ID."""

    def _headers(user_id="user-1", is_admin=False):
        token = container.token_service.create_token(user_id, is_admin=is_admin)
        return {"Authorization": f"Bearer {token}"}

    return _headers
