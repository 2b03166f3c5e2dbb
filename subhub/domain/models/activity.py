from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(slots=True)
class RequestInfo:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(slots=True)
class ActivityRecord:
    """Append-only audit entry describing one lifecycle event."""

    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    user_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def build(
        cls,
        action: str,
        *,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        user_id: Optional[str] = None,
        request_info: Optional[RequestInfo] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ActivityRecord":
        info = request_info or RequestInfo()
        return cls(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            user_id=user_id,
            ip_address=info.ip_address,
            user_agent=info.user_agent,
            metadata=dict(metadata or {}),
        )
