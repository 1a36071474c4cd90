"""Emergency ("break-the-glass") access workflow.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from ._emergency import EmergencyAccessService
from ._workflow import NotifyCallback, WorkflowController
from .exceptions import ClinicAccessError, InvalidTransitionError, ValidationError
from .models.emergency_models import (
    JUSTIFICATION_MIN_LENGTH,
    EmergencyAccessGrant,
    EmergencyAccessRequest,
    EmergencyReason,
)
from .models.notice_models import Notice, NoticeKind

logger = logging.getLogger(__name__)

TRANSPORT_MESSAGE = "Failed to process emergency access request. Please try again."


class EmergencyStep(str, Enum):
    """Steps of the emergency access dialog."""

    WARNING = "warning"
    FORM = "form"
    SUCCESS = "success"


class EmergencyAccessController(WorkflowController):
    """Acknowledgement gate, justification form and grant display.

    Every open of the dialog starts at the warning step; ``close`` throws
    away whatever was entered.
    """

    def __init__(
        self,
        service: EmergencyAccessService,
        patient_id: int | None = None,
        patient_name: str | None = None,
        *,
        notify: NotifyCallback | None = None,
        on_access_granted: Callable[[str], None] | None = None,
    ) -> None:
        super().__init__(notify)
        self._service = service
        self.patient_id = patient_id
        self.patient_name = patient_name
        self._on_access_granted = on_access_granted
        self.reasons: list[EmergencyReason] = []
        self._clear()

    def _clear(self) -> None:
        self.step = EmergencyStep.WARNING
        self.reason = ""
        self.justification = ""
        self.acknowledged = False
        self.grant: EmergencyAccessGrant | None = None

    @property
    def reason_values(self) -> list[str]:
        return [r.value for r in self.reasons]

    async def load_reasons(self) -> Notice:
        """Fetch the selectable reasons; call when the dialog opens."""
        operation = "load_reasons"
        generation = self._start(operation)
        if generation is None:
            return self._busy(operation)
        try:
            reasons = await self._service.get_reasons()
        except ClinicAccessError as e:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._failure(
                e,
                title="Error",
                transport_message="Failed to load emergency access reasons",
            )
        finally:
            self._finish(operation, generation)

        if self._is_stale(generation):
            return self._stale(operation)
        self.reasons = reasons
        if self.reason and self.reason not in self.reason_values:
            self.reason = ""
        return self._emit(
            Notice(
                kind=NoticeKind.SUCCESS,
                title="Reasons loaded",
                message=f"{len(reasons)} reasons available",
            )
        )

    def acknowledge(self, checked: bool = True) -> None:
        """Record the audit/compliance checkbox. No server effect."""
        self.acknowledged = bool(checked)

    def proceed(self) -> bool:
        """Continue from the warning to the form; blocked until acknowledged."""
        if self.step is not EmergencyStep.WARNING or not self.acknowledged:
            return False
        self.step = EmergencyStep.FORM
        logger.debug("Emergency access moved to form")
        return True

    def back(self) -> bool:
        """Return to the warning; the acknowledgement is kept."""
        if self.step is not EmergencyStep.FORM:
            return False
        self.step = EmergencyStep.WARNING
        return True

    def select_reason(self, value: str) -> bool:
        if value not in self.reason_values:
            return False
        self.reason = value
        return True

    def set_justification(self, text: str) -> None:
        self.justification = text

    @property
    def can_submit(self) -> bool:
        return (
            self.step is EmergencyStep.FORM
            and self.acknowledged
            and bool(self.reasons)
            and self.reason in self.reason_values
            and len(self.justification) >= JUSTIFICATION_MIN_LENGTH
            and not self.is_pending("submit_request")
        )

    def _build_request(self, request: EmergencyAccessRequest | None) -> EmergencyAccessRequest:
        if self.step is not EmergencyStep.FORM or not self.acknowledged:
            raise InvalidTransitionError(
                "Acknowledge the emergency access notice before submitting",
                {"step": self.step.value},
            )
        if request is None:
            if self.patient_id is None:
                raise ValidationError("No patient selected", {"field": "patientId"})
            request = EmergencyAccessRequest(
                patient_id=self.patient_id,
                reason=self.reason,
                justification=self.justification,
            )
        request.check_submittable()
        if not self.reasons:
            raise ValidationError("No emergency access reasons are available")
        if request.reason not in self.reason_values:
            raise ValidationError(
                "Please select one of the listed reasons", {"field": "reason"}
            )
        return request

    async def submit_request(
        self, request: EmergencyAccessRequest | None = None
    ) -> Notice:
        """Validate locally, then ask the server for a grant.

        Args:
            request: Explicit request; defaults to the patient and form fields.

        """
        operation = "submit_request"
        try:
            request = self._build_request(request)
        except (InvalidTransitionError, ValidationError) as e:
            return self._invalid(e, "Incomplete Form")

        generation = self._start(operation)
        if generation is None:
            return self._busy(operation)
        try:
            response = await self._service.request_access(request)
        except ClinicAccessError as e:
            if self._is_stale(generation):
                return self._stale(operation)
            return self._failure(
                e,
                title="Error",
                transport_message=TRANSPORT_MESSAGE,
                denial_title="Access Denied",
            )
        finally:
            self._finish(operation, generation)

        if self._is_stale(generation):
            return self._stale(operation)

        if not response.success:
            logger.warning("Emergency access denied for patient %s", request.patient_id)
            return self._emit(
                Notice(
                    kind=NoticeKind.DENIAL,
                    title="Access Denied",
                    message=response.error or "Unable to grant emergency access",
                )
            )
        if response.grant is None:
            logger.warning("Emergency access response carried no grant")
            return self._emit(
                Notice(kind=NoticeKind.TRANSPORT, title="Error", message=TRANSPORT_MESSAGE)
            )

        self.grant = response.grant
        self.patient_id = request.patient_id
        self.reason = request.reason
        self.justification = request.justification
        self.step = EmergencyStep.SUCCESS
        logger.info(
            "Emergency access grant %s issued for patient %s",
            response.grant.short_id,
            request.patient_id,
        )
        if self._on_access_granted is not None:
            try:
                self._on_access_granted(response.grant.access_token)
            except Exception:
                logger.exception("Access granted callback failed")
        return self._emit(
            Notice(
                kind=NoticeKind.SUCCESS,
                title="Emergency Access Granted",
                message="You now have temporary access to this patient's records.",
            )
        )

    def close(self) -> None:
        """Reset every transient field; the next open starts at the warning."""
        self._reset()
        self._clear()
