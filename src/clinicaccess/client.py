"""ClinicAccess client using service composition.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

from typing import Callable, Self

import httpx

from ._base import BaseClient
from ._emergency import EmergencyAccessService
from ._mfa import MFAService
from ._workflow import NotifyCallback
from .config import Endpoints
from .emergency_controller import EmergencyAccessController
from .mfa_controller import MFAController


class ClinicAccessClient:
    """Client for the clinic Access/Identity Service."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        retries: int = 3,
        backoff: float = 1.0,
        api_key: str | None = None,
        endpoints: Endpoints | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize ClinicAccess client.

        Args:
            base_url: Base URL of the records server
            timeout: Request timeout in seconds
            retries: Number of retry attempts for failed idempotent requests
            backoff: Base delay in seconds between retries
            api_key: Optional API key for authentication
            endpoints: Route overrides for the Access/Identity Service
            transport: Optional httpx transport

        """
        self._client = BaseClient(
            base_url=base_url,
            timeout=timeout,
            retries=retries,
            api_key=api_key,
            backoff=backoff,
            endpoints=endpoints,
            transport=transport,
        )

        self.mfa = MFAService(self._client)
        self.emergency = EmergencyAccessService(self._client)

    async def __aenter__(self) -> Self:
        """Async context manager entry.

        Returns:
            The client instance.

        """
        await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        await self._client.__aexit__(exc_type, exc_val, exc_tb)

    async def close(self) -> None:
        """Close the client and clean up resources."""
        await self._client.close()

    def set_access_token(self, token: str) -> None:
        """Set access token for authenticated requests.

        Args:
            token: Access token to set

        """
        self._client.set_access_token(token)

    def clear_access_token(self) -> None:
        """Clear the stored access token."""
        self._client.clear_access_token()

    def get_access_token(self) -> str | None:
        """Get the current access token.

        Returns:
            Current access token or None if not set.

        """
        return self._client.get_access_token()

    def mfa_settings(self, *, notify: NotifyCallback | None = None) -> MFAController:
        """Create a controller for the MFA settings workflow."""
        return MFAController(self.mfa, notify=notify)

    def emergency_access(
        self,
        patient_id: int | None = None,
        patient_name: str | None = None,
        *,
        notify: NotifyCallback | None = None,
        on_access_granted: Callable[[str], None] | None = None,
    ) -> EmergencyAccessController:
        """Create a controller for one emergency access dialog."""
        return EmergencyAccessController(
            self.emergency,
            patient_id,
            patient_name,
            notify=notify,
            on_access_granted=on_access_granted,
        )
