from __future__ import annotations

"""
Per-student progress folding.

Turns the raw `submissions` rows of one student into the counters the
achievement and leaderboard features read:

	- total_points: sum of scores (incomplete submissions included unless disabled)
	- completed_count: submissions flagged completed
	- perfect_score_count: submissions scoring at or above the perfect threshold
	- daily_completion_counts: submissions per UTC calendar day
	- streak: distinct days with a submission inside the trailing window

Calendar days are taken in UTC so the same rows always land on the same day
regardless of where the service runs.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

DEFAULT_STREAK_WINDOW_DAYS = 30
DEFAULT_PERFECT_SCORE = 95


@dataclass(frozen=True)
class SubmissionRecord:
    student_id: str
    assignment_id: str
    score: float
    completed: bool
    submitted_at: Optional[datetime]

    @property
    def day(self) -> Optional[str]:
        if self.submitted_at is None:
            return None
        return _as_utc(self.submitted_at).date().isoformat()


@dataclass
class ProgressSnapshot:
    total_points: float = 0
    completed_count: int = 0
    perfect_score_count: int = 0
    daily_completion_counts: Dict[str, int] = field(default_factory=dict)
    streak: int = 0

    @property
    def max_daily_completions(self) -> int:
        return max(self.daily_completion_counts.values(), default=0)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def _coerce_score(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return int(number) if number.is_integer() else number


def submission_from_row(row: Mapping[str, Any]) -> SubmissionRecord:
    """Normalise a `submissions` row; null score is 0, null timestamp falls back to created_at."""
    return SubmissionRecord(
        student_id=str(row.get("student_id") or ""),
        assignment_id=str(row.get("assignment_id") or ""),
        score=_coerce_score(row.get("score")),
        completed=bool(row.get("completed")),
        submitted_at=parse_timestamp(row.get("submitted_at") or row.get("created_at")),
    )


def total_points(submissions: Iterable[SubmissionRecord], include_incomplete: bool = True) -> float:
    return sum(s.score for s in submissions if include_incomplete or s.completed)


def daily_completion_counts(submissions: Iterable[SubmissionRecord]) -> Dict[str, int]:
    counts = Counter(s.day for s in submissions if s.day is not None)
    return dict(counts)


def calculate_streak(
    submissions: Iterable[SubmissionRecord],
    now: Optional[datetime] = None,
    window_days: int = DEFAULT_STREAK_WINDOW_DAYS,
) -> int:
    """Distinct calendar days with at least one submission in the trailing window.

    A submission is inside the window when it is at most ``window_days`` whole
    days old. Rows stamped slightly ahead of ``now`` (database clock skew)
    still count.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    days = set()
    for s in submissions:
        if s.submitted_at is None:
            continue
        age = now - _as_utc(s.submitted_at)
        if age.days <= window_days:
            days.add(s.day)
    return len(days)


def aggregate_progress(
    submissions: Iterable[SubmissionRecord],
    now: Optional[datetime] = None,
    include_incomplete: bool = True,
    window_days: int = DEFAULT_STREAK_WINDOW_DAYS,
    perfect_score: float = DEFAULT_PERFECT_SCORE,
) -> ProgressSnapshot:
    submissions = list(submissions)
    if not submissions:
        return ProgressSnapshot()
    return ProgressSnapshot(
        total_points=total_points(submissions, include_incomplete=include_incomplete),
        completed_count=sum(1 for s in submissions if s.completed),
        perfect_score_count=sum(1 for s in submissions if s.score >= perfect_score),
        daily_completion_counts=daily_completion_counts(submissions),
        streak=calculate_streak(submissions, now=now, window_days=window_days),
    )
