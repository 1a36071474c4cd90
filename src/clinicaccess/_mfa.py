"""Multi-factor authentication service for ClinicAccess.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

from typing import Any

from ._base import BaseClient, RequestConfig
from .models.mfa_models import MfaVerifyRequest


class MFAService:
    """Service for TOTP and backup-code operations."""

    def __init__(self, client: BaseClient) -> None:
        """Initialize MFA service.

        Args:
            client: The base HTTP client

        """
        self._client = client
        self._endpoints = client.endpoints

    async def get_status(self) -> dict[str, Any]:
        """Get MFA status for the signed-in user.

        Returns:
            Status with ``enabled``, ``backupCodesRemaining`` and ``method``.

        """
        return await self._client.make_request("GET", self._endpoints.mfa_status)

    async def begin_setup(self) -> dict[str, Any]:
        """Start TOTP enrollment.

        Returns:
            Secret, otpauth URL for the QR code, and the pending backup codes.

        """
        return await self._client.make_request("POST", self._endpoints.mfa_setup)

    async def verify_setup(self, code: str) -> dict[str, Any]:
        """Confirm enrollment with a code from the authenticator app.

        Args:
            code: 6-digit TOTP code

        Returns:
            Verification response.

        """
        config = RequestConfig(json_data=MfaVerifyRequest(code=code).model_dump())
        return await self._client.make_request(
            "POST", self._endpoints.mfa_verify_setup, config=config
        )

    async def verify(self, code: str) -> dict[str, Any]:
        """Verify a TOTP or backup code during login or step-up.

        Args:
            code: TOTP code or backup code

        Returns:
            Verification response.

        """
        config = RequestConfig(json_data=MfaVerifyRequest(code=code).model_dump())
        return await self._client.make_request(
            "POST", self._endpoints.mfa_verify, config=config
        )

    async def disable(self, code: str) -> dict[str, Any]:
        """Disable MFA.

        Args:
            code: Current MFA code for confirmation

        Returns:
            Disable confirmation.

        """
        config = RequestConfig(json_data=MfaVerifyRequest(code=code).model_dump())
        return await self._client.make_request(
            "POST", self._endpoints.mfa_disable, config=config
        )

    async def regenerate_backup_codes(self, code: str) -> dict[str, Any]:
        """Issue a new backup-code set, invalidating the previous one.

        Args:
            code: Current MFA code for confirmation

        Returns:
            New backup codes.

        """
        config = RequestConfig(json_data=MfaVerifyRequest(code=code).model_dump())
        return await self._client.make_request(
            "POST", self._endpoints.mfa_regenerate_backup_codes, config=config
        )
