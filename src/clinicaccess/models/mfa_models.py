"""MFA (Multi-Factor Authentication) models for ClinicAccess.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MfaStatus(BaseModel):
    """MFA status for the signed-in user."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool
    backup_codes_remaining: int = Field(default=0, ge=0, alias="backupCodesRemaining")
    method: str = "totp"


class MfaSetupResponse(BaseModel):
    """Response to starting MFA enrollment."""

    model_config = ConfigDict(populate_by_name=True)

    secret: str
    qr_code_url: str = Field(alias="qrCodeUrl")
    backup_codes: list[str] = Field(default_factory=list, alias="backupCodes")
    message: str | None = None


class MfaVerifyRequest(BaseModel):
    """MFA code submission."""

    code: str


class MfaVerifyResponse(BaseModel):
    """Outcome of verifying, disabling or otherwise confirming with a code."""

    success: bool = False
    message: str | None = None
    error: str | None = None


class BackupCodesResponse(BaseModel):
    """Freshly issued backup codes."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    backup_codes: list[str] = Field(default_factory=list, alias="backupCodes")
    message: str | None = None


class SetupStep(str, Enum):
    """Steps of the enrollment dialog."""

    QR = "qr"
    VERIFY = "verify"
    BACKUP = "backup"


class MfaSetupSession(BaseModel):
    """Client-held enrollment session. Never persisted."""

    secret: str
    qr_code_url: str
    backup_codes: list[str] = Field(default_factory=list)
    step: SetupStep = SetupStep.QR

    @classmethod
    def from_setup(cls, setup: MfaSetupResponse) -> "MfaSetupSession":
        return cls(
            secret=setup.secret,
            qr_code_url=setup.qr_code_url,
            backup_codes=list(setup.backup_codes),
        )
