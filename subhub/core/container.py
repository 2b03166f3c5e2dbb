from dataclasses import dataclass
from typing import Optional

from .config import Settings
from ..infrastructure.repositories.activity_repository import ActivityRepository
from ..infrastructure.repositories.subscription_repository import SubscriptionRepository
from ..services.activity_logger import ActivityLogger
from ..services.background import DetachedTasks
from ..services.checkout_service import CheckoutService
from ..services.discount_service import DiscountService
from ..services.entitlement_client import EntitlementClient, build_entitlement_client
from ..services.license_service import LicenseService
from ..services.product_service import ProductService
from ..services.subscription_service import SubscriptionService
from ..services.token_service import TokenService


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    tasks: DetachedTasks
    token_service: TokenService
    subscription_service: SubscriptionService
    license_service: LicenseService
    product_service: ProductService
    checkout_service: CheckoutService
    discount_service: DiscountService
    entitlement_client: Optional[EntitlementClient] = None

    async def aclose(self) -> None:
        await self.tasks.drain()
        if self.entitlement_client is not None:
            await self.entitlement_client.aclose()


def build_container(
    settings: Settings,
    entitlement_client: Optional[EntitlementClient] = None,
) -> ApplicationContainer:
    """Wire repositories, the provider client and services from settings."""
    settings.database_path.parent.mkdir(parents=True, exist_ok=True)
    db_path = str(settings.database_path)

    if entitlement_client is None:
        entitlement_client = build_entitlement_client(settings)

    tasks = DetachedTasks()
    activity_logger = ActivityLogger(ActivityRepository(db_path), tasks)

    return ApplicationContainer(
        settings=settings,
        tasks=tasks,
        token_service=TokenService(
            jwt_secret=settings.jwt_secret,
            jwt_algorithm=settings.jwt_algorithm,
            jwt_expiration_hours=settings.jwt_expiration_hours,
        ),
        subscription_service=SubscriptionService(
            SubscriptionRepository(db_path),
            activity_logger,
            tasks,
            entitlement_client,
            upgrade_product_id=settings.creem_basic_product_id,
            app_url=settings.app_url,
        ),
        license_service=LicenseService(entitlement_client, activity_logger),
        product_service=ProductService(entitlement_client, activity_logger),
        checkout_service=CheckoutService(entitlement_client),
        discount_service=DiscountService(entitlement_client, activity_logger),
        entitlement_client=entitlement_client,
    )
