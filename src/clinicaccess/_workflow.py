"""Shared plumbing for the client-side workflow controllers.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import Callable

from .exceptions import (
    ClinicAccessError,
    DenialError,
    InvalidTransitionError,
    TransportError,
    ValidationError,
)
from .models.notice_models import Notice, NoticeKind

logger = logging.getLogger(__name__)

NotifyCallback = Callable[[Notice], None]


class WorkflowController:
    """Base for single-owner, event-driven workflow controllers.

    Every request records the controller generation it was issued under.
    ``_reset`` bumps the generation, so answers to requests issued before a
    reset are recognised as stale and dropped.
    """

    def __init__(self, notify: NotifyCallback | None = None) -> None:
        self._notify = notify
        self._generation = 0
        self._pending: set[str] = set()
        self.notice: Notice | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def is_pending(self, operation: str | None = None) -> bool:
        """Whether a request of the given kind (or any kind) is in flight."""
        if operation is None:
            return bool(self._pending)
        return operation in self._pending

    def _reset(self) -> None:
        self._generation += 1
        self._pending.clear()
        self.notice = None

    def _start(self, operation: str) -> int | None:
        """Mark an operation in flight; None if one of that kind already is."""
        if operation in self._pending:
            return None
        self._pending.add(operation)
        return self._generation

    def _finish(self, operation: str, generation: int) -> None:
        if generation == self._generation:
            self._pending.discard(operation)

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _emit(self, notice: Notice) -> Notice:
        if notice.kind is not NoticeKind.STALE:
            self.notice = notice
        if self._notify is not None:
            try:
                self._notify(notice)
            except Exception:
                logger.exception("Notice callback failed for %s", notice.title)
        return notice

    def _busy(self, operation: str) -> Notice:
        return self._emit(
            Notice(
                kind=NoticeKind.PENDING,
                title="Please wait",
                message=f"A {operation.replace('_', ' ')} request is already in progress",
            )
        )

    def _stale(self, operation: str) -> Notice:
        logger.debug("Discarding %s result issued before reset", operation)
        return self._emit(Notice(kind=NoticeKind.STALE, title="Discarded"))

    def _invalid(self, error: ValidationError | InvalidTransitionError, title: str) -> Notice:
        return self._emit(
            Notice(kind=NoticeKind.VALIDATION, title=title, message=error.message)
        )

    def _failure(
        self,
        error: ClinicAccessError,
        *,
        title: str,
        transport_message: str,
        denial_title: str | None = None,
        denial_message: str | None = None,
    ) -> Notice:
        """Translate a data-layer error into a notice.

        Denials keep the server's wording unless ``denial_message`` replaces
        it; anything else is framed as retryable.
        """
        if isinstance(error, DenialError):
            logger.warning("%s: denied (%s)", title, error.code)
            return self._emit(
                Notice(
                    kind=NoticeKind.DENIAL,
                    title=denial_title or title,
                    message=denial_message or error.message,
                )
            )
        if isinstance(error, ValidationError):
            return self._invalid(error, title)
        if not isinstance(error, TransportError):
            logger.warning("%s: unexpected client error %s", title, error.code)
        else:
            logger.warning("%s: transport failure (%s)", title, error.code)
        return self._emit(
            Notice(kind=NoticeKind.TRANSPORT, title=title, message=transport_message)
        )
