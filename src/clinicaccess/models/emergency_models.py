"""Emergency ("break-the-glass") access models for ClinicAccess.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import ValidationError

JUSTIFICATION_MIN_LENGTH = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # Naive timestamps from the server are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EmergencyReason(BaseModel):
    """One selectable reason for emergency access."""

    value: str
    label: str
    description: str = ""


class EmergencyAccessRequest(BaseModel):
    """Request body for emergency access."""

    model_config = ConfigDict(populate_by_name=True)

    patient_id: int = Field(alias="patientId")
    reason: str = ""
    justification: str = ""

    def check_submittable(self) -> None:
        """Raise ValidationError unless the request may be sent.

        Raises:
            ValidationError: If the reason is missing or the justification is too short.

        """
        if not self.reason:
            raise ValidationError(
                "Please select a reason for emergency access",
                {"field": "reason"},
            )
        if len(self.justification) < JUSTIFICATION_MIN_LENGTH:
            raise ValidationError(
                "Please provide detailed justification "
                f"(minimum {JUSTIFICATION_MIN_LENGTH} characters)",
                {"field": "justification", "length": len(self.justification)},
            )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class EmergencyAccessGrant(BaseModel):
    """Server-issued, time-boxed emergency access credential."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    expires_at: datetime = Field(alias="expiresAt")
    access_token: str = Field(alias="accessToken", repr=False)

    @property
    def short_id(self) -> str:
        return self.id[:8]

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the grant should be shown as unusable.

        Expiry is enforced by the server; this is for display only.
        """
        return (_aware(now) if now else _utcnow()) > _aware(self.expires_at)

    def remaining(self, now: datetime | None = None) -> timedelta:
        left = _aware(self.expires_at) - (_aware(now) if now else _utcnow())
        return max(left, timedelta(0))


class EmergencyAccessResponse(BaseModel):
    """Answer to an emergency access request."""

    success: bool = False
    grant: EmergencyAccessGrant | None = None
    error: str | None = None
    message: str | None = None


class GrantSummary(BaseModel):
    """Grant details returned when verifying access."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    expires_at: datetime = Field(alias="expiresAt")
    reason: str | None = None


class GrantVerification(BaseModel):
    """Whether the caller currently holds emergency access to a patient."""

    model_config = ConfigDict(populate_by_name=True)

    has_access: bool = Field(alias="hasAccess")
    grant: GrantSummary | None = None


class GrantRecord(BaseModel):
    """A grant as listed for compliance review and patient history.

    Fields hidden from non-administrators are optional.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: int | None = Field(default=None, alias="userId")
    patient_id: int | None = Field(default=None, alias="patientId")
    reason: str
    justification: str | None = None
    granted_at: datetime = Field(alias="grantedAt")
    expires_at: datetime = Field(alias="expiresAt")
    reviewed: bool = False
    reviewed_by: int | None = Field(default=None, alias="reviewedBy")
    reviewed_at: datetime | None = Field(default=None, alias="reviewedAt")
    review_notes: str | None = Field(default=None, alias="reviewNotes")


class EmergencyAccessLog(BaseModel):
    """One audited action taken under a grant."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    grant_id: str = Field(alias="grantId")
    action: str
    resource_type: str = Field(alias="resourceType")
    resource_id: int | None = Field(default=None, alias="resourceId")
    timestamp: datetime
    details: str | None = None


class ComplianceStats(BaseModel):
    """Emergency access compliance counters."""

    model_config = ConfigDict(populate_by_name=True)

    active_grants: int = Field(alias="activeGrants")
    pending_reviews: int = Field(alias="pendingReviews")
    grants_today: int = Field(alias="grantsToday")
    grants_this_week: int = Field(alias="grantsThisWeek")
    overdue_reviews: int = Field(alias="overdueReviews")


class ActionResult(BaseModel):
    """Generic success/message acknowledgement."""

    success: bool = False
    message: str | None = None
