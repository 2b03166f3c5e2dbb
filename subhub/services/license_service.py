"""Service for license key activation, deactivation and validation."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..domain.exceptions import LicenseError, ProviderApiError, ValidationError
from ..domain.models import (
    ActivityRecord,
    AuthenticatedUser,
    LicenseAction,
    LicenseCommand,
    RequestInfo,
    redact_license_key,
)
from .activity_logger import ActivityLogger
from .entitlement_client import EntitlementClient

logger = logging.getLogger(__name__)


class LicenseService:
    """Pass-through to the provider's license API with uniform errors and auditing.

    The provider is authoritative for activation state; nothing is stored
    locally apart from the audit trail, which only ever sees the redacted key.
    """

    def __init__(
        self,
        entitlement_client: Optional[EntitlementClient],
        activity_logger: ActivityLogger,
    ) -> None:
        self._client = entitlement_client
        self._activity_logger = activity_logger

    async def execute(
        self,
        command: LicenseCommand,
        *,
        actor: Optional[AuthenticatedUser] = None,
        request_info: Optional[RequestInfo] = None,
    ) -> Dict[str, Any]:
        action = command.action
        if action is LicenseAction.ACTIVATE:
            return await self.activate(
                command.license_key,
                customer_email=command.customer_email,
                customer_name=command.customer_name,
                metadata=command.metadata,
                actor=actor,
                request_info=request_info,
            )
        if action is LicenseAction.DEACTIVATE:
            return await self.deactivate(
                command.license_key,
                reason=command.reason,
                actor=actor,
                request_info=request_info,
            )
        if action is LicenseAction.VALIDATE:
            return await self.validate(command.license_key)
        raise ValidationError(f"Unsupported license action: {action!r}")

    async def activate(
        self,
        license_key: Optional[str],
        *,
        customer_email: Optional[str] = None,
        customer_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        actor: Optional[AuthenticatedUser] = None,
        request_info: Optional[RequestInfo] = None,
    ) -> Dict[str, Any]:
        key = self._require_key(license_key)
        client = self._require_client()
        try:
            license_data = await client.activate_license(
                key,
                customer_email=customer_email,
                customer_name=customer_name,
                metadata=metadata,
            )
        except ProviderApiError as exc:
            raise LicenseError.from_provider(exc) from exc

        self._record("license.activated", key, license_data, actor, request_info)
        return license_data

    async def deactivate(
        self,
        license_key: Optional[str],
        *,
        reason: Optional[str] = None,
        actor: Optional[AuthenticatedUser] = None,
        request_info: Optional[RequestInfo] = None,
    ) -> Dict[str, Any]:
        key = self._require_key(license_key)
        client = self._require_client()
        try:
            license_data = await client.deactivate_license(key, reason=reason)
        except ProviderApiError as exc:
            raise LicenseError.from_provider(exc) from exc

        self._record("license.deactivated", key, license_data, actor, request_info)
        return license_data

    async def validate(self, license_key: Optional[str]) -> Dict[str, Any]:
        key = self._require_key(license_key)
        client = self._require_client()
        try:
            return await client.validate_license(key)
        except ProviderApiError as exc:
            raise LicenseError.from_provider(exc) from exc

    # ------------------------------------------------------------------
    @staticmethod
    def _require_key(license_key: Optional[str]) -> str:
        if not license_key or not license_key.strip():
            raise ValidationError("licenseKey is required")
        return license_key

    def _require_client(self) -> EntitlementClient:
        if self._client is None:
            raise LicenseError.not_configured()
        return self._client

    def _record(
        self,
        action: str,
        license_key: str,
        license_data: Dict[str, Any],
        actor: Optional[AuthenticatedUser],
        request_info: Optional[RequestInfo],
    ) -> None:
        redacted = redact_license_key(license_key)
        license_id = license_data.get("id") if isinstance(license_data, dict) else None
        logger.info("%s for key %s", action, redacted)
        self._activity_logger.record(
            ActivityRecord.build(
                action,
                resource_type="license",
                resource_id=str(license_id) if license_id else redacted,
                user_id=actor.user_id if actor else None,
                request_info=request_info,
                metadata={"license_key": redacted},
            )
        )
