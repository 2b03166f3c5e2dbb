"""License command types.

Licenses are not persisted locally; the provider owns activation state and
this module only describes the commands sent to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..exceptions import ValidationError

REDACTED_PREFIX_LENGTH = 8


class LicenseAction(str, Enum):
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    VALIDATE = "validate"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "LicenseAction":
        """Resolve an action selector, rejecting missing or unknown values."""
        allowed = ", ".join(action.value for action in cls)
        if not raw:
            raise ValidationError(f"action parameter is required ({allowed})")
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(f"Invalid action: {raw}. Must be one of: {allowed}") from None


@dataclass(slots=True)
class LicenseCommand:
    action: LicenseAction
    license_key: Optional[str]
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    reason: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


def redact_license_key(license_key: str) -> str:
    """Return the non-secret form of a key: its first 8 characters and '...'.

    Keys shorter than the prefix are reduced to '...' alone.
    """
    if len(license_key) < REDACTED_PREFIX_LENGTH:
        return "..."
    return license_key[:REDACTED_PREFIX_LENGTH] + "..."
