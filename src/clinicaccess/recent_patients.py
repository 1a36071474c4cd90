"""Recently and frequently viewed patients.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

from collections import Counter, OrderedDict
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

DEFAULT_CAPACITY = 10


class RecentPatientsSnapshot(BaseModel):
    """Serialized tracker state, most recent patient first."""

    recent: list[int] = Field(default_factory=list)
    view_counts: dict[int, int] = Field(default_factory=dict)


class RecentPatients:
    """Bounded most-recently-viewed list plus per-patient view counts.

    Viewing a patient moves it to the front; beyond ``capacity`` the oldest
    entry is evicted. View counts are unbounded and survive eviction.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._recent: OrderedDict[int, None] = OrderedDict()
        self._counts: Counter[int] = Counter()
        self._order: dict[int, int] = {}
        self._clock = 0

    def __len__(self) -> int:
        return len(self._recent)

    def __contains__(self, patient_id: object) -> bool:
        return patient_id in self._recent

    def track_view(self, patient_id: int) -> None:
        self._recent[patient_id] = None
        self._recent.move_to_end(patient_id, last=False)
        while len(self._recent) > self.capacity:
            self._recent.popitem(last=True)
        self._counts[patient_id] += 1
        self._clock += 1
        self._order[patient_id] = self._clock

    def recent(self, limit: int = 5) -> list[int]:
        return list(self._recent)[:limit]

    def frequent(self, limit: int = 5) -> list[int]:
        """Most viewed first; ties go to the more recently viewed patient."""
        ranked = sorted(
            self._counts,
            key=lambda pid: (self._counts[pid], self._order.get(pid, 0)),
            reverse=True,
        )
        return ranked[:limit]

    def view_count(self, patient_id: int) -> int:
        return self._counts[patient_id]

    def forget(self, patient_id: int) -> None:
        self._recent.pop(patient_id, None)
        self._counts.pop(patient_id, None)
        self._order.pop(patient_id, None)

    def clear(self) -> None:
        self._recent.clear()
        self._counts.clear()
        self._order.clear()
        self._clock = 0

    def to_snapshot(self) -> RecentPatientsSnapshot:
        return RecentPatientsSnapshot(
            recent=list(self._recent), view_counts=dict(self._counts)
        )

    @classmethod
    def from_snapshot(
        cls, snapshot: RecentPatientsSnapshot, capacity: int = DEFAULT_CAPACITY
    ) -> RecentPatients:
        tracker = cls(capacity)
        # Replay oldest first so the counters and recency order line up.
        for patient_id in reversed(snapshot.recent[:capacity]):
            tracker._recent[patient_id] = None
            tracker._recent.move_to_end(patient_id, last=False)
            tracker._clock += 1
            tracker._order[patient_id] = tracker._clock
        tracker._counts.update(
            {pid: count for pid, count in snapshot.view_counts.items() if count > 0}
        )
        return tracker

    def save(self, path: str | Path) -> None:
        Path(path).write_text(self.to_snapshot().model_dump_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path, capacity: int = DEFAULT_CAPACITY) -> RecentPatients:
        """Load a saved tracker; a missing file yields an empty one.

        Raises:
            ValidationError: If the file exists but is not a valid snapshot.

        """
        target = Path(path)
        if not target.exists():
            return cls(capacity)
        try:
            snapshot = RecentPatientsSnapshot.model_validate_json(
                target.read_text(encoding="utf-8")
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Corrupt recent patients file: {target}") from e
        return cls.from_snapshot(snapshot, capacity)
