"""Route configuration for the Access/Identity Service.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Endpoints(BaseModel):
    """Routes used by the endpoint services.

    Path templates use ``str.format`` placeholders. Only the services read
    these; controllers are unaware of routing.
    """

    model_config = ConfigDict(frozen=True)

    mfa_status: str = "/api/mfa/status"
    mfa_setup: str = "/api/mfa/setup"
    mfa_verify_setup: str = "/api/mfa/verify-setup"
    mfa_verify: str = "/api/mfa/verify"
    mfa_disable: str = "/api/mfa/disable"
    mfa_regenerate_backup_codes: str = "/api/mfa/regenerate-backup-codes"

    emergency_reasons: str = "/api/emergency-access/reasons"
    emergency_request: str = "/api/emergency-access/request"
    emergency_verify: str = "/api/emergency-access/verify/{patient_id}"
    emergency_revoke: str = "/api/emergency-access/revoke/{grant_id}"
    emergency_pending_reviews: str = "/api/emergency-access/pending-reviews"
    emergency_review: str = "/api/emergency-access/review/{grant_id}"
    emergency_logs: str = "/api/emergency-access/logs/{grant_id}"
    emergency_patient_history: str = "/api/emergency-access/patient-history/{patient_id}"
    emergency_stats: str = "/api/emergency-access/stats"


DEFAULT_ENDPOINTS = Endpoints()
