"""Example usage of the ClinicAccess Python SDK."""
# Copyright (c) 2025 ClinicAccess. All rights reserved.

import asyncio
import logging
import os

from clinicaccess import (
    ClinicAccessClient,
    ClinicAccessError,
    EmergencyAccessRequest,
    MfaState,
    Notice,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVER_URL = os.environ.get("CLINICACCESS_SERVER_URL", "http://localhost:5000")


def show(notice: Notice) -> None:
    """Stand-in for a toast: print every notice a workflow emits."""
    logger.info("[%s] %s %s", notice.kind.value, notice.title, notice.message)


async def mfa_example(client: ClinicAccessClient) -> None:
    """Walk through MFA enrollment."""
    logger.info("=== MFA Enrollment Example ===")

    settings = client.mfa_settings(notify=show)
    await settings.get_status()

    if settings.state is MfaState.ENABLED:
        logger.info(
            "MFA already enabled (%s backup codes left)",
            settings.status.backup_codes_remaining if settings.status else "?",
        )
        return

    notice = await settings.begin_setup()
    if not notice.ok or settings.session is None:
        return

    logger.info("Secret: %s", settings.session.secret)
    logger.info("Scan with your authenticator app: %s", settings.session.qr_code_url)
    settings.proceed()

    # In a real app, you'd prompt the user for the code
    code = input("Enter the 6-digit code: ").strip()
    await settings.verify_code(code)
    if settings.state is MfaState.BACKUP:
        logger.info("\n%s", settings.export_backup_codes())
    settings.close()


async def emergency_example(client: ClinicAccessClient) -> None:
    """Request break-the-glass access to a patient."""
    logger.info("=== Emergency Access Example ===")

    # The grant token is its own credential, not a session token.
    grant_tokens: list[str] = []
    dialog = client.emergency_access(
        patient_id=42,
        patient_name="Jane Doe",
        notify=show,
        on_access_granted=grant_tokens.append,
    )
    await dialog.load_reasons()
    for reason in dialog.reasons:
        logger.info("  %s: %s", reason.value, reason.label)

    dialog.acknowledge()
    dialog.proceed()
    await dialog.submit_request(
        EmergencyAccessRequest(
            patient_id=42,
            reason="life-threatening",
            justification="Patient unresponsive, need immediate history.",
        )
    )

    if dialog.grant is not None:
        logger.info(
            "Grant %s valid for %s", dialog.grant.short_id, dialog.grant.remaining()
        )
    dialog.close()

    if grant_tokens:
        try:
            check = await client.emergency.verify_access(42, grant_tokens[-1])
            logger.info("Emergency access active: %s", check.has_access)
        except ClinicAccessError as e:
            logger.info("Could not verify emergency access: %s", e.message)


async def compliance_example(client: ClinicAccessClient) -> None:
    """Administrator view of emergency access reviews."""
    logger.info("=== Compliance Review Example ===")

    try:
        stats = await client.emergency.stats()
        logger.info(
            "Active grants: %s, pending reviews: %s",
            stats.active_grants,
            stats.pending_reviews,
        )
        for record in await client.emergency.pending_reviews():
            logger.info("Grant %s: %s", record.id, record.reason)
    except ClinicAccessError as e:
        logger.info("Compliance view unavailable: %s", e.message)


async def main() -> None:
    """Execute main example function."""
    async with ClinicAccessClient(SERVER_URL) as client:
        token = os.environ.get("CLINICACCESS_TOKEN")
        if token:
            client.set_access_token(token)

        await mfa_example(client)
        await emergency_example(client)
        await compliance_example(client)


if __name__ == "__main__":
    asyncio.run(main())
