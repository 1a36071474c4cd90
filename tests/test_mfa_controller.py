"""Tests for the MFA enrollment and backup-code workflow.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import httpx
import pytest
import respx
from clinicaccess import (
    ClinicAccessClient,
    InvalidTransitionError,
    MFAController,
    MfaState,
    NoticeKind,
    ValidationError,
)
from clinicaccess.mfa_controller import BACKUP_CODES_FILENAME

from helpers import GatedCall, json_response, request_json

SETUP = "/api/mfa/setup"
VERIFY_SETUP = "/api/mfa/verify-setup"
STATUS = "/api/mfa/status"
DISABLE = "/api/mfa/disable"
REGENERATE = "/api/mfa/regenerate-backup-codes"


@pytest.fixture
def notices() -> list[Any]:
    return []


@pytest.fixture
def mfa(client: ClinicAccessClient, notices: list[Any]) -> MFAController:
    return client.mfa_settings(notify=notices.append)


async def _enabled(mfa: MFAController, mock_responses: respx.MockRouter) -> None:
    mock_responses.get(STATUS).mock(
        return_value=json_response(
            200, {"enabled": True, "backupCodesRemaining": 8, "method": "totp"}
        )
    )
    await mfa.get_status()
    assert mfa.state is MfaState.ENABLED


async def _at_verify(
    mfa: MFAController, mock_responses: respx.MockRouter, setup: dict[str, Any]
) -> None:
    mock_responses.post(SETUP).mock(return_value=json_response(200, setup))
    await mfa.begin_setup()
    assert mfa.proceed()


async def test_end_to_end_enrollment(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
) -> None:
    """Setup, proceed and a confirmed code land on the backup step."""
    mock_responses.post(SETUP).mock(return_value=json_response(200, sample_setup))
    verify = mock_responses.post(VERIFY_SETUP).mock(
        return_value=json_response(200, {"success": True, "message": "MFA enabled"})
    )

    notice = await mfa.begin_setup()
    assert notice.kind is NoticeKind.SUCCESS
    assert mfa.state is MfaState.QR
    assert mfa.session is not None
    assert mfa.session.secret == "JBSWY3DPEHPK3PXP"
    assert mfa.session.qr_code_url.startswith("otpauth://")
    assert mfa.backup_codes == []

    assert mfa.proceed()
    assert mfa.state is MfaState.VERIFY

    notice = await mfa.verify_code("123456")
    assert notice.kind is NoticeKind.SUCCESS
    assert mfa.state is MfaState.BACKUP
    assert mfa.backup_codes == ["111111", "222222"]
    assert request_json(verify) == {"code": "123456"}


async def test_qr_cannot_jump_to_backup(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
) -> None:
    """Verifying from the QR step is refused without contacting the server."""
    mock_responses.post(SETUP).mock(return_value=json_response(200, sample_setup))
    verify = mock_responses.post(VERIFY_SETUP).mock(
        return_value=json_response(200, {"success": True})
    )
    await mfa.begin_setup()

    notice = await mfa.verify_code("123456")

    assert notice.kind is NoticeKind.VALIDATION
    assert mfa.state is MfaState.QR
    assert not verify.called


async def test_back_returns_to_qr(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
) -> None:
    await _at_verify(mfa, mock_responses, sample_setup)

    assert mfa.back()
    assert mfa.state is MfaState.QR
    assert not mfa.back()


@pytest.mark.parametrize("code", ["", "12345", "1234567", "12a456", " 12345", "١٢٣٤٥٦"])
async def test_verify_requires_six_digits(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
    code: str,
) -> None:
    await _at_verify(mfa, mock_responses, sample_setup)
    verify = mock_responses.post(VERIFY_SETUP).mock(
        return_value=json_response(200, {"success": True})
    )

    notice = await mfa.verify_code(code)

    assert notice.kind is NoticeKind.VALIDATION
    assert mfa.state is MfaState.VERIFY
    assert not verify.called


@pytest.mark.parametrize(
    "response",
    [
        json_response(400, {"success": False, "error": "Invalid or expired code"}),
        json_response(200, {"success": False}),
        json_response(429, {"error": "Account temporarily locked"}),
    ],
)
async def test_verify_rejection_is_uniform(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
    response: httpx.Response,
) -> None:
    """Wrong, expired and locked all read the same and stay on verify."""
    await _at_verify(mfa, mock_responses, sample_setup)
    mock_responses.post(VERIFY_SETUP).mock(return_value=response)

    notice = await mfa.verify_code("123456")

    assert notice.kind is NoticeKind.VERIFICATION_FAILURE
    assert notice.message == "Invalid verification code. Please try again."
    assert mfa.state is MfaState.VERIFY
    assert mfa.backup_codes == []


async def test_verify_transport_failure_stays_on_verify(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
) -> None:
    await _at_verify(mfa, mock_responses, sample_setup)
    verify = mock_responses.post(VERIFY_SETUP).mock(
        side_effect=httpx.ConnectError("connection refused")
    )

    notice = await mfa.verify_code("123456")

    assert notice.kind is NoticeKind.TRANSPORT
    assert notice.retryable
    assert mfa.state is MfaState.VERIFY
    assert verify.call_count == 1


async def test_verify_success_invalidates_status(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
) -> None:
    status = mock_responses.get(STATUS).mock(
        side_effect=[
            json_response(200, {"enabled": False, "backupCodesRemaining": 0, "method": "totp"}),
            json_response(200, {"enabled": True, "backupCodesRemaining": 2, "method": "totp"}),
        ]
    )
    assert (await mfa.get_status()).enabled is False
    assert (await mfa.get_status()).enabled is False
    assert status.call_count == 1

    await _at_verify(mfa, mock_responses, sample_setup)
    mock_responses.post(VERIFY_SETUP).mock(return_value=json_response(200, {"success": True}))
    await mfa.verify_code("654321")

    assert mfa.status is None
    refreshed = await mfa.get_status()
    assert refreshed is not None
    assert refreshed.enabled is True
    assert refreshed.backup_codes_remaining == 2
    assert status.call_count == 2


async def test_begin_setup_failures_are_generic(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
) -> None:
    mock_responses.post(SETUP).mock(
        side_effect=[
            json_response(400, {"error": "MFA is already enabled. Disable it first to set up again."}),
            httpx.Response(500, text="boom"),
        ]
    )

    denied = await mfa.begin_setup()
    assert denied.kind is NoticeKind.DENIAL
    assert denied.message == "Failed to initiate MFA setup"
    assert mfa.state is MfaState.DISABLED

    failed = await mfa.begin_setup()
    assert failed.kind is NoticeKind.TRANSPORT
    assert failed.message == "Failed to initiate MFA setup"
    assert mfa.state is MfaState.DISABLED
    assert mfa.session is None


async def test_begin_setup_rejects_malformed_payload(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
) -> None:
    mock_responses.post(SETUP).mock(return_value=json_response(200, {"success": True}))

    notice = await mfa.begin_setup()

    assert notice.kind is NoticeKind.TRANSPORT
    assert mfa.state is MfaState.DISABLED


async def test_begin_setup_not_offered_when_enabled(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
) -> None:
    await _enabled(mfa, mock_responses)
    setup = mock_responses.post(SETUP)

    notice = await mfa.begin_setup()

    assert notice.kind is NoticeKind.VALIDATION
    assert not setup.called


@pytest.mark.parametrize("stop_at", ["qr", "verify", "backup"])
async def test_close_resets_enrollment(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
    stop_at: str,
) -> None:
    mock_responses.post(SETUP).mock(return_value=json_response(200, sample_setup))
    mock_responses.post(VERIFY_SETUP).mock(return_value=json_response(200, {"success": True}))
    await mfa.begin_setup()
    if stop_at != "qr":
        mfa.proceed()
    if stop_at == "backup":
        await mfa.verify_code("123456")
    assert mfa.state.value == stop_at

    mfa.close()
    first = (mfa.state, mfa.session, mfa.backup_codes, mfa.notice, mfa.is_pending())
    mfa.close()
    second = (mfa.state, mfa.session, mfa.backup_codes, mfa.notice, mfa.is_pending())

    assert first == (MfaState.DISABLED, None, [], None, False)
    assert first == second


async def test_duplicate_verify_is_refused_while_in_flight(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
) -> None:
    await _at_verify(mfa, mock_responses, sample_setup)
    gated = GatedCall(result={"success": True})
    mfa._service.verify_setup = gated  # type: ignore[method-assign]

    first = asyncio.create_task(mfa.verify_code("123456"))
    await asyncio.sleep(0)
    assert mfa.is_pending("verify_code")

    second = await mfa.verify_code("123456")
    assert second.kind is NoticeKind.PENDING

    gated.gate.set()
    assert (await first).kind is NoticeKind.SUCCESS
    assert len(gated.calls) == 1
    assert not mfa.is_pending()


async def test_result_after_close_is_discarded(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
) -> None:
    await _at_verify(mfa, mock_responses, sample_setup)
    gated = GatedCall(result={"success": True})
    mfa._service.verify_setup = gated  # type: ignore[method-assign]

    task = asyncio.create_task(mfa.verify_code("123456"))
    await asyncio.sleep(0)
    mfa.close()
    gated.gate.set()

    notice = await task
    assert notice.kind is NoticeKind.STALE
    assert mfa.state is MfaState.DISABLED
    assert mfa.backup_codes == []
    assert mfa.notice is None


async def test_regenerate_replaces_codes(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
) -> None:
    await _enabled(mfa, mock_responses)
    regenerate = mock_responses.post(REGENERATE).mock(
        side_effect=[
            json_response(200, {"success": True, "backupCodes": ["A1", "B2", "C3"]}),
            json_response(200, {"success": True, "backupCodes": ["D4", "E5", "F6"]}),
        ]
    )

    assert mfa.open_backup_codes()
    assert mfa.state is MfaState.REGENERATE_CONFIRM
    await mfa.regenerate_backup_codes("123456")
    assert mfa.state is MfaState.BACKUP_DISPLAY
    assert mfa.backup_codes == ["A1", "B2", "C3"]

    notice = await mfa.regenerate_backup_codes("654321")

    assert notice.kind is NoticeKind.SUCCESS
    assert mfa.backup_codes == ["D4", "E5", "F6"]
    assert request_json(regenerate) == {"code": "654321"}
    assert mfa.status is None


async def test_regenerate_rejection_keeps_codes(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
) -> None:
    await _enabled(mfa, mock_responses)
    mock_responses.post(REGENERATE).mock(
        side_effect=[
            json_response(200, {"success": True, "backupCodes": ["A1", "B2"]}),
            json_response(400, {"error": "Invalid MFA code"}),
        ]
    )
    mfa.open_backup_codes()
    await mfa.regenerate_backup_codes("123456")

    notice = await mfa.regenerate_backup_codes("000000")

    assert notice.kind is NoticeKind.VERIFICATION_FAILURE
    assert notice.message == "Failed to regenerate backup codes"
    assert mfa.backup_codes == ["A1", "B2"]
    assert mfa.state is MfaState.BACKUP_DISPLAY


async def test_disable_success_returns_to_disabled(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
) -> None:
    await _enabled(mfa, mock_responses)
    disable = mock_responses.post(DISABLE).mock(
        return_value=json_response(200, {"success": True, "message": "MFA has been disabled"})
    )

    assert mfa.open_disable()
    assert mfa.state is MfaState.DISABLE_CONFIRM
    notice = await mfa.disable("123456")

    assert notice.kind is NoticeKind.SUCCESS
    assert notice.title == "MFA Disabled"
    assert mfa.notice == notice
    assert mfa.status is None
    assert mfa.state is MfaState.DISABLED
    assert request_json(disable) == {"code": "123456"}


async def test_disable_short_code_is_not_sent(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
) -> None:
    await _enabled(mfa, mock_responses)
    disable = mock_responses.post(DISABLE)
    mfa.open_disable()

    notice = await mfa.disable("12345")

    assert notice.kind is NoticeKind.VALIDATION
    assert not disable.called
    assert mfa.state is MfaState.DISABLE_CONFIRM


async def test_disable_rejection_keeps_dialog_open(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
) -> None:
    await _enabled(mfa, mock_responses)
    mock_responses.post(DISABLE).mock(
        return_value=json_response(400, {"error": "Invalid MFA code"})
    )
    mfa.open_disable()

    first = await mfa.disable("111111")
    second = await mfa.disable("222222")

    assert first.kind is second.kind is NoticeKind.VERIFICATION_FAILURE
    assert mfa.state is MfaState.DISABLE_CONFIRM


async def test_dialogs_need_mfa_enabled(mfa: MFAController) -> None:
    assert mfa.state is MfaState.DISABLED
    assert not mfa.open_disable()
    assert not mfa.open_backup_codes()
    assert not mfa.proceed()


async def test_export_backup_codes(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
    tmp_path: Any,
) -> None:
    await _at_verify(mfa, mock_responses, sample_setup)
    mock_responses.post(VERIFY_SETUP).mock(return_value=json_response(200, {"success": True}))
    await mfa.verify_code("123456")
    calls_before = len(mock_responses.calls)

    text = mfa.export_backup_codes(datetime(2025, 3, 1, 9, 30))

    assert text.startswith("ClinicAccess MFA Backup Codes\nGenerated: 2025-03-01 09:30:00\n")
    assert "\n111111\n222222\n" in text
    assert "Each code can only be used once" in text
    assert len(mock_responses.calls) == calls_before
    assert mfa.backup_codes == ["111111", "222222"]

    saved = mfa.save_backup_codes(tmp_path)
    assert saved == tmp_path / BACKUP_CODES_FILENAME
    assert "222222" in saved.read_text(encoding="utf-8")


async def test_export_without_codes_raises(mfa: MFAController) -> None:
    with pytest.raises(ValidationError):
        mfa.export_backup_codes()


async def test_notify_receives_every_notice(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    notices: list[Any],
) -> None:
    mock_responses.post(SETUP).mock(return_value=httpx.Response(503))

    await mfa.begin_setup()

    assert [n.kind for n in notices] == [NoticeKind.TRANSPORT]


async def test_save_backup_codes_to_file(
    mfa: MFAController,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
    tmp_path: Any,
) -> None:
    await _at_verify(mfa, mock_responses, sample_setup)
    mock_responses.post(VERIFY_SETUP).mock(return_value=json_response(200, {"success": True}))
    await mfa.verify_code("123456")
    generated_at = datetime(2025, 3, 1, 9, 30)
    target = tmp_path / "my-codes.txt"

    saved = mfa.save_backup_codes(target, generated_at)

    assert saved == target
    assert saved.read_text(encoding="utf-8") == mfa.export_backup_codes(generated_at)
    assert not (tmp_path / BACKUP_CODES_FILENAME).exists()


async def test_setup_step_needs_a_session(mfa: MFAController) -> None:
    mfa._dialog = MfaState.QR

    with pytest.raises(InvalidTransitionError):
        mfa.proceed()


async def test_failing_notify_does_not_escape(
    client: ClinicAccessClient,
    mock_responses: respx.MockRouter,
    sample_setup: dict[str, Any],
) -> None:
    def explode(_: Any) -> None:
        raise RuntimeError("toast failed")

    mock_responses.post(SETUP).mock(return_value=json_response(200, sample_setup))
    mfa = client.mfa_settings(notify=explode)

    notice = await mfa.begin_setup()

    assert notice.kind is NoticeKind.SUCCESS
    assert mfa.state is MfaState.QR
    assert mfa.notice == notice
