"""ClinicAccess models package.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from .emergency_models import (
    JUSTIFICATION_MIN_LENGTH,
    ActionResult,
    ComplianceStats,
    EmergencyAccessGrant,
    EmergencyAccessLog,
    EmergencyAccessRequest,
    EmergencyAccessResponse,
    EmergencyReason,
    GrantRecord,
    GrantSummary,
    GrantVerification,
)
from .mfa_models import (
    BackupCodesResponse,
    MfaSetupResponse,
    MfaSetupSession,
    MfaStatus,
    MfaVerifyRequest,
    MfaVerifyResponse,
    SetupStep,
)
from .notice_models import Notice, NoticeKind

__all__ = [
    # Emergency access models
    "JUSTIFICATION_MIN_LENGTH",
    "ActionResult",
    "ComplianceStats",
    "EmergencyAccessGrant",
    "EmergencyAccessLog",
    "EmergencyAccessRequest",
    "EmergencyAccessResponse",
    "EmergencyReason",
    "GrantRecord",
    "GrantSummary",
    "GrantVerification",
    # MFA models
    "BackupCodesResponse",
    "MfaSetupResponse",
    "MfaSetupSession",
    "MfaStatus",
    "MfaVerifyRequest",
    "MfaVerifyResponse",
    "SetupStep",
    # Notices
    "Notice",
    "NoticeKind",
]
