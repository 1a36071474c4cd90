"""User-facing notice models for ClinicAccess workflows.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class NoticeKind(str, Enum):
    """Outcome category of a workflow operation."""

    SUCCESS = "success"
    VALIDATION = "validation"
    DENIAL = "denial"
    TRANSPORT = "transport"
    VERIFICATION_FAILURE = "verification_failure"
    PENDING = "pending"
    STALE = "stale"


class Notice(BaseModel):
    """A message for the user, the equivalent of a toast."""

    model_config = ConfigDict(frozen=True)

    kind: NoticeKind
    title: str
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is NoticeKind.SUCCESS

    @property
    def destructive(self) -> bool:
        return self.kind in {
            NoticeKind.VALIDATION,
            NoticeKind.DENIAL,
            NoticeKind.TRANSPORT,
            NoticeKind.VERIFICATION_FAILURE,
        }

    @property
    def retryable(self) -> bool:
        return self.kind is NoticeKind.TRANSPORT
