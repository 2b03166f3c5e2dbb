from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_settings(container: ApplicationContainer = Depends(get_container)):
    return container.settings


def get_token_service(container: ApplicationContainer = Depends(get_container)):
    return container.token_service


def get_subscription_service(container: ApplicationContainer = Depends(get_container)):
    return container.subscription_service


def get_license_service(container: ApplicationContainer = Depends(get_container)):
    return container.license_service


def get_product_service(container: ApplicationContainer = Depends(get_container)):
    return container.product_service


def get_checkout_service(container: ApplicationContainer = Depends(get_container)):
    return container.checkout_service


def get_discount_service(container: ApplicationContainer = Depends(get_container)):
    return container.discount_service
