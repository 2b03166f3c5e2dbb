"""Domain models for the subscription and license service."""

from .activity import ActivityRecord, RequestInfo
from .identity import AuthenticatedUser
from .license import LicenseAction, LicenseCommand, redact_license_key
from .subscription import Subscription, plan_display_name

__all__ = [
    "ActivityRecord",
    "AuthenticatedUser",
    "LicenseAction",
    "LicenseCommand",
    "RequestInfo",
    "Subscription",
    "plan_display_name",
    "redact_license_key",
]
