"""MFA enrollment, verification and backup-code workflow.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from enum import Enum
from pathlib import Path

from ._base import parse_model
from ._mfa import MFAService
from ._workflow import NotifyCallback, WorkflowController
from .exceptions import (
    ClinicAccessError,
    DenialError,
    InvalidTransitionError,
    ValidationError,
    VerificationFailure,
)
from .models.mfa_models import (
    BackupCodesResponse,
    MfaSetupResponse,
    MfaSetupSession,
    MfaStatus,
    MfaVerifyResponse,
    SetupStep,
)
from .models.notice_models import Notice, NoticeKind

logger = logging.getLogger(__name__)

BACKUP_CODES_FILENAME = "clinicaccess-backup-codes.txt"
DISABLE_CODE_MIN_LENGTH = 6

_TOTP_CODE = re.compile(r"[0-9]{6}")


class MfaState(str, Enum):
    """Where the MFA settings workflow currently is."""

    DISABLED = "disabled"
    ENABLED = "enabled"
    QR = "qr"
    VERIFY = "verify"
    BACKUP = "backup"
    DISABLE_CONFIRM = "disable-confirm"
    REGENERATE_CONFIRM = "regenerate-confirm"
    BACKUP_DISPLAY = "backup-display"


_SETUP_STATES = {
    SetupStep.QR: MfaState.QR,
    SetupStep.VERIFY: MfaState.VERIFY,
    SetupStep.BACKUP: MfaState.BACKUP,
}


def check_totp_code(code: str) -> str:
    """Return the code if it is exactly six ASCII digits.

    Raises:
        ValidationError: Otherwise.

    """
    if not _TOTP_CODE.fullmatch(code or ""):
        raise ValidationError("Enter the 6-digit code from your authenticator app")
    return code


def format_backup_codes(codes: list[str], generated_at: datetime | None = None) -> str:
    """Render backup codes as the plain-text export artifact."""
    generated_at = generated_at or datetime.now()
    lines = [
        "ClinicAccess MFA Backup Codes",
        f"Generated: {generated_at:%Y-%m-%d %H:%M:%S}",
        "",
        "Keep these codes in a safe place. Each code can only be used once.",
        "",
        *codes,
        "",
        "IMPORTANT: If you lose access to your authenticator app, "
        "you can use one of these codes to log in.",
    ]
    return "\n".join(lines) + "\n"


class MFAController(WorkflowController):
    """Drives TOTP enrollment, disabling and backup-code regeneration.

    Backup codes only ever live in memory for as long as the dialog showing
    them is open. The server keeps no plaintext copy; the only way to see
    codes again is to regenerate them, which invalidates the previous set.
    """

    def __init__(self, service: MFAService, notify: NotifyCallback | None = None) -> None:
        super().__init__(notify)
        self._service = service
        self._status: MfaStatus | None = None
        self._status_version = 0
        self._dialog: MfaState | None = None
        self._session: MfaSetupSession | None = None
        self._backup_codes: list[str] = []

    @property
    def state(self) -> MfaState:
        if self._dialog is not None:
            return self._dialog
        if self._status is not None and self._status.enabled:
            return MfaState.ENABLED
        return MfaState.DISABLED

    @property
    def status(self) -> MfaStatus | None:
        return self._status

    @property
    def session(self) -> MfaSetupSession | None:
        return self._session

    @property
    def backup_codes(self) -> list[str]:
        return list(self._backup_codes)

    # Status cache

    def invalidate_status(self) -> None:
        self._status = None
        self._status_version += 1

    async def get_status(self) -> MfaStatus | None:
        """Return the cached MFA status, fetching it if needed.

        Returns:
            The status, or None if it could not be loaded.

        """
        if self._status is not None:
            return self._status

        version = self._status_version
        try:
            status = parse_model(MfaStatus, await self._service.get_status())
        except ClinicAccessError as e:
            self._failure(
                e,
                title="Error",
                transport_message="Failed to load MFA status",
            )
            return None

        if version != self._status_version:
            return self._status
        self._status = status
        return status

    # Enrollment

    def _require(self, *states: MfaState) -> None:
        if self.state not in states:
            raise InvalidTransitionError(
                f"Not available while MFA is {self.state.value}",
                {"state": self.state.value},
            )

    async def begin_setup(self) -> Notice:
        """Request a new secret, QR payload and backup codes."""
        operation = "begin_setup"
        try:
            self._require(MfaState.DISABLED)
        except InvalidTransitionError as e:
            return self._invalid(e, "MFA Setup")

        generation = self._start(operation)
        if generation is None:
            return self._busy(operation)
        try:
            setup = parse_model(MfaSetupResponse, await self._service.begin_setup())
        except ClinicAccessError as e:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._failure(
                e,
                title="Error",
                transport_message="Failed to initiate MFA setup",
                denial_message="Failed to initiate MFA setup",
            )
        finally:
            self._finish(operation, generation)

        if self._is_stale(generation):
            return self._stale(operation)

        self._session = MfaSetupSession.from_setup(setup)
        self._dialog = MfaState.QR
        logger.debug("MFA setup started")
        return self._emit(
            Notice(
                kind=NoticeKind.SUCCESS,
                title="Scan QR Code",
                message="Scan this QR code with your authenticator app",
            )
        )

    def _move_setup(self, step: SetupStep) -> None:
        if self._session is None:
            raise InvalidTransitionError("No MFA setup in progress")
        self._session = self._session.model_copy(update={"step": step})
        self._dialog = _SETUP_STATES[step]
        logger.debug("MFA setup moved to %s", step.value)

    def proceed(self) -> bool:
        """Move from the QR code to code entry."""
        if self.state is not MfaState.QR:
            return False
        self._move_setup(SetupStep.VERIFY)
        return True

    def back(self) -> bool:
        """Return from code entry to the QR code."""
        if self.state is not MfaState.VERIFY:
            return False
        self._move_setup(SetupStep.QR)
        return True

    async def verify_code(self, code: str) -> Notice:
        """Confirm enrollment with a code from the authenticator app.

        Only a server-confirmed success moves the session to the backup step.
        """
        operation = "verify_code"
        try:
            self._require(MfaState.VERIFY)
            check_totp_code(code)
        except (InvalidTransitionError, ValidationError) as e:
            return self._invalid(e, "Verification Failed")

        generation = self._start(operation)
        if generation is None:
            return self._busy(operation)
        try:
            result = parse_model(
                MfaVerifyResponse, await self._service.verify_setup(code)
            )
        except DenialError:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._rejected(VerificationFailure())
        except ClinicAccessError as e:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._failure(
                e,
                title="Verification Failed",
                transport_message="Could not reach the server. Please try again.",
            )
        finally:
            self._finish(operation, generation)

        if self._is_stale(generation):
            return self._stale(operation)
        if not result.success:
            return self._rejected(VerificationFailure())

        self._backup_codes = list(self._session.backup_codes) if self._session else []
        self._move_setup(SetupStep.BACKUP)
        self.invalidate_status()
        return self._emit(
            Notice(
                kind=NoticeKind.SUCCESS,
                title="MFA Enabled",
                message="Two-factor authentication is now active on your account",
            )
        )

    def _rejected(self, failure: VerificationFailure, title: str = "Verification Failed") -> Notice:
        logger.warning("%s: code rejected", title)
        return self._emit(
            Notice(
                kind=NoticeKind.VERIFICATION_FAILURE,
                title=title,
                message=failure.message,
            )
        )

    # Disable

    def open_disable(self) -> bool:
        if self.state is not MfaState.ENABLED:
            return False
        self._dialog = MfaState.DISABLE_CONFIRM
        return True

    async def disable(self, code: str) -> Notice:
        """Turn MFA off after confirming with a current code."""
        operation = "disable"
        try:
            self._require(MfaState.DISABLE_CONFIRM)
            if len((code or "").strip()) < DISABLE_CODE_MIN_LENGTH:
                raise ValidationError("Enter your current MFA code")
        except (InvalidTransitionError, ValidationError) as e:
            return self._invalid(e, "Error")

        failure = VerificationFailure("Failed to disable MFA. Please check your code.")
        generation = self._start(operation)
        if generation is None:
            return self._busy(operation)
        try:
            result = parse_model(
                MfaVerifyResponse, await self._service.disable(code.strip())
            )
        except DenialError:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._rejected(failure, "Error")
        except ClinicAccessError as e:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._failure(
                e,
                title="Error",
                transport_message="Could not reach the server. Please try again.",
            )
        finally:
            self._finish(operation, generation)

        if self._is_stale(generation):
            return self._stale(operation)
        if not result.success:
            return self._rejected(failure, "Error")

        self.close()
        self.invalidate_status()
        logger.debug("MFA disabled")
        return self._emit(
            Notice(
                kind=NoticeKind.SUCCESS,
                title="MFA Disabled",
                message="Two-factor authentication has been disabled",
            )
        )

    # Backup codes

    def open_backup_codes(self) -> bool:
        if self.state is not MfaState.ENABLED:
            return False
        self._dialog = MfaState.REGENERATE_CONFIRM
        return True

    async def regenerate_backup_codes(self, code: str) -> Notice:
        """Replace the backup-code set. The previous codes stop working."""
        operation = "regenerate_backup_codes"
        try:
            self._require(MfaState.REGENERATE_CONFIRM, MfaState.BACKUP_DISPLAY)
            check_totp_code(code)
        except (InvalidTransitionError, ValidationError) as e:
            return self._invalid(e, "Error")

        failure = VerificationFailure("Failed to regenerate backup codes")
        generation = self._start(operation)
        if generation is None:
            return self._busy(operation)
        try:
            result = parse_model(
                BackupCodesResponse, await self._service.regenerate_backup_codes(code)
            )
        except DenialError:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._rejected(failure, "Error")
        except ClinicAccessError as e:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._failure(
                e,
                title="Error",
                transport_message="Could not reach the server. Please try again.",
            )
        finally:
            self._finish(operation, generation)

        if self._is_stale(generation):
            return self._stale(operation)
        if not result.success:
            return self._rejected(failure, "Error")

        self._backup_codes = list(result.backup_codes)
        self._dialog = MfaState.BACKUP_DISPLAY
        self.invalidate_status()
        return self._emit(
            Notice(
                kind=NoticeKind.SUCCESS,
                title="Backup Codes Regenerated",
                message="New backup codes have been generated",
            )
        )

    def export_backup_codes(self, generated_at: datetime | None = None) -> str:
        """Serialize the backup codes on screen to the download text.

        Does not contact the server and does not mark anything as saved.

        Raises:
            ValidationError: If no codes are currently held.

        """
        if not self._backup_codes:
            raise ValidationError("There are no backup codes to export")
        return format_backup_codes(self._backup_codes, generated_at)

    def save_backup_codes(
        self, path: str | Path, generated_at: datetime | None = None
    ) -> Path:
        """Write the export text to ``path`` (or into it, if it is a directory)."""
        target = Path(path)
        if target.is_dir():
            target = target / BACKUP_CODES_FILENAME
        target.write_text(self.export_backup_codes(generated_at), encoding="utf-8")
        return target

    def close(self) -> None:
        """Drop every transient value and leave the dialogs."""
        self._reset()
        self._dialog = None
        self._session = None
        self._backup_codes = []
