"""Test configuration and common utilities.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import pytest
import respx
from clinicaccess import ClinicAccessClient

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator


BASE_URL = "https://records.clinic.test"


@pytest.fixture
def base_url() -> str:
    """Return base URL for test server.

    Returns:
        str: The base URL for testing.

    """
    return BASE_URL


@pytest.fixture
def api_key() -> str:
    """Return test API key.

    Returns:
        str: The API key for testing.

    """
    return "test-api-key-12345"


@pytest.fixture
async def client(
    base_url: str,
    api_key: str,
) -> AsyncGenerator[ClinicAccessClient, None]:
    """Create test client.

    Yields:
        ClinicAccessClient: Configured test client with instant retries.

    """
    async with ClinicAccessClient(
        base_url=base_url,
        api_key=api_key,
        timeout=5.0,
        retries=1,
        backoff=0.0,
    ) as client:
        client.set_access_token("session-token")
        yield client


@pytest.fixture
def mock_responses(base_url: str) -> Generator[respx.MockRouter, None, None]:
    """Mock HTTP responses.

    Yields:
        The mock router for HTTP requests.

    """
    with respx.mock(base_url=base_url, assert_all_called=False) as router:
        yield router


@pytest.fixture
def sample_reasons() -> list[dict[str, Any]]:
    """Emergency reasons as the server lists them."""
    return [
        {
            "value": "life-threatening",
            "label": "Life-threatening emergency",
            "description": "Immediate threat to patient life requiring urgent intervention",
        },
        {
            "value": "unconscious_patient",
            "label": "Unconscious/Incapacitated Patient",
            "description": "Patient unable to provide consent due to medical condition",
        },
    ]


@pytest.fixture
def sample_grant() -> dict[str, Any]:
    """A grant expiring an hour from now."""
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=3600)
    return {
        "id": "g-1",
        "expiresAt": expires_at.isoformat(),
        "accessToken": "tok-abc",
    }


@pytest.fixture
def sample_setup() -> dict[str, Any]:
    """MFA setup response."""
    return {
        "success": True,
        "secret": "JBSWY3DPEHPK3PXP",
        "qrCodeUrl": "otpauth://totp/ClinicAccess:doctor%40clinic.test?secret=JBSWY3DPEHPK3PXP",
        "backupCodes": ["111111", "222222"],
        "message": "Scan the QR code with your authenticator app, then verify with a code",
    }

