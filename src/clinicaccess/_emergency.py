"""Emergency ("break-the-glass") access service for ClinicAccess.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

from ._base import BaseClient, RequestConfig, parse_model, parse_model_list
from .exceptions import ValidationError
from .models.emergency_models import (
    ActionResult,
    ComplianceStats,
    EmergencyAccessLog,
    EmergencyAccessRequest,
    EmergencyAccessResponse,
    EmergencyReason,
    GrantRecord,
    GrantVerification,
)


class EmergencyAccessService:
    """Service for requesting, verifying and reviewing emergency access."""

    def __init__(self, client: BaseClient) -> None:
        """Initialize emergency access service.

        Args:
            client: The base HTTP client

        """
        self._client = client
        self._endpoints = client.endpoints

    async def get_reasons(self) -> list[EmergencyReason]:
        """List the reasons a clinician may select.

        Returns:
            Reference list of emergency reasons.

        """
        data = await self._client.make_request("GET", self._endpoints.emergency_reasons)
        return parse_model_list(EmergencyReason, data)

    async def request_access(
        self, request: EmergencyAccessRequest
    ) -> EmergencyAccessResponse:
        """Request emergency access to a patient's records.

        A policy denial comes back as a 400 carrying ``success: false`` and an
        ``error``; that is returned rather than raised.

        Args:
            request: Patient, reason and justification

        Returns:
            The grant on success, or the server's denial.

        """
        config = RequestConfig(json_data=request.to_payload(), accept_statuses=(400,))
        data = await self._client.make_request(
            "POST", self._endpoints.emergency_request, config=config
        )
        return parse_model(EmergencyAccessResponse, data)

    async def verify_access(
        self, patient_id: int, token: str | None = None
    ) -> GrantVerification:
        """Check whether the caller holds active emergency access to a patient.

        Args:
            patient_id: Patient ID
            token: Optional grant access token to check against

        Returns:
            Access flag and the active grant, if any.

        """
        params = {"token": token} if token else None
        config = RequestConfig(params=params)
        data = await self._client.make_request(
            "GET",
            self._endpoints.emergency_verify.format(patient_id=patient_id),
            config=config,
        )
        return parse_model(GrantVerification, data)

    async def revoke(self, grant_id: str, reason: str) -> ActionResult:
        """Revoke a grant (administrators only).

        Args:
            grant_id: Grant ID
            reason: Why the grant is revoked

        Returns:
            Revocation confirmation.

        Raises:
            ValidationError: If no reason is given.

        """
        if not reason.strip():
            raise ValidationError("Revocation reason is required", {"field": "reason"})
        config = RequestConfig(json_data={"reason": reason})
        data = await self._client.make_request(
            "POST",
            self._endpoints.emergency_revoke.format(grant_id=grant_id),
            config=config,
        )
        return parse_model(ActionResult, data)

    async def pending_reviews(self) -> list[GrantRecord]:
        """List grants awaiting compliance review, oldest first."""
        data = await self._client.make_request(
            "GET", self._endpoints.emergency_pending_reviews
        )
        return parse_model_list(GrantRecord, data)

    async def review(self, grant_id: str, approved: bool, notes: str) -> ActionResult:
        """Record a compliance review of a grant.

        Args:
            grant_id: Grant ID
            approved: Whether the access was justified
            notes: Reviewer notes

        Returns:
            Review confirmation.

        Raises:
            ValidationError: If no notes are given.

        """
        if not notes.strip():
            raise ValidationError("Review notes are required", {"field": "notes"})
        config = RequestConfig(json_data={"approved": approved, "notes": notes})
        data = await self._client.make_request(
            "POST",
            self._endpoints.emergency_review.format(grant_id=grant_id),
            config=config,
        )
        return parse_model(ActionResult, data)

    async def logs(self, grant_id: str) -> list[EmergencyAccessLog]:
        """List actions audited under a grant, in time order."""
        data = await self._client.make_request(
            "GET", self._endpoints.emergency_logs.format(grant_id=grant_id)
        )
        return parse_model_list(EmergencyAccessLog, data)

    async def patient_history(self, patient_id: int) -> list[GrantRecord]:
        """List emergency grants for a patient, newest first."""
        data = await self._client.make_request(
            "GET",
            self._endpoints.emergency_patient_history.format(patient_id=patient_id),
        )
        return parse_model_list(GrantRecord, data)

    async def stats(self) -> ComplianceStats:
        """Get emergency access compliance counters."""
        data = await self._client.make_request("GET", self._endpoints.emergency_stats)
        return parse_model(ComplianceStats, data)
