from __future__ import annotations

"""
Achievement evaluation over an aggregated progress snapshot.

Each definition's metric is picked from a strategy map keyed on its
category; the ``special`` category dispatches again on the achievement id.
An achievement counts as unlocked when an unlock row already exists or its
progress reaches the requirement during this pass. Only pairs missing from
the fetched unlocks are emitted as new unlock rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from app.common.errors import ComputationError
from app.features.progress.aggregator import ProgressSnapshot, parse_timestamp
from .definitions import ACHIEVEMENTS, AchievementCategory, AchievementDefinition


@dataclass(frozen=True)
class AchievementUnlock:
    student_id: str
    achievement_id: str
    unlocked_at: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "achievement_id": self.achievement_id,
            "unlocked_at": self.unlocked_at.isoformat() if self.unlocked_at else None,
        }


def unlock_from_row(row: Mapping[str, Any]) -> AchievementUnlock:
    return AchievementUnlock(
        student_id=str(row.get("student_id") or ""),
        achievement_id=str(row.get("achievement_id") or ""),
        unlocked_at=parse_timestamp(row.get("unlocked_at") or row.get("created_at")),
    )


@dataclass(frozen=True)
class EvaluationContext:
    """Facts that do not come from the student's own submissions."""

    has_action_challenges: bool = False


MetricFn = Callable[[AchievementDefinition, ProgressSnapshot, EvaluationContext], float]


SPECIAL_METRICS: Dict[str, MetricFn] = {
    "perfect_score": lambda d, s, c: s.perfect_score_count,
    "speed_demon": lambda d, s, c: s.max_daily_completions,
    "eco_expert": lambda d, s, c: 1 if c.has_action_challenges else 0,
}


def _special_metric(definition: AchievementDefinition, snapshot: ProgressSnapshot, context: EvaluationContext) -> float:
    metric = SPECIAL_METRICS.get(definition.id)
    if metric is None:
        raise ComputationError(f"no_metric_for_special_achievement:{definition.id}")
    return metric(definition, snapshot, context)


CATEGORY_METRICS: Dict[AchievementCategory, MetricFn] = {
    AchievementCategory.points: lambda d, s, c: s.total_points,
    AchievementCategory.completion: lambda d, s, c: s.completed_count,
    AchievementCategory.streak: lambda d, s, c: s.streak,
    AchievementCategory.special: _special_metric,
}


def metric_for(
    definition: AchievementDefinition,
    snapshot: ProgressSnapshot,
    context: Optional[EvaluationContext] = None,
) -> float:
    return CATEGORY_METRICS[definition.category](definition, snapshot, context or EvaluationContext())


@dataclass
class AchievementProgress:
    definition: AchievementDefinition
    progress: float
    unlocked: bool
    unlocked_at: Optional[datetime] = None
    newly_unlocked: bool = False

    @property
    def progress_ratio(self) -> float:
        return max(0.0, min(1.0, self.progress / self.definition.requirement))


@dataclass
class EvaluationResult:
    student_id: str
    achievements: List[AchievementProgress] = field(default_factory=list)
    new_unlocks: List[AchievementUnlock] = field(default_factory=list)

    @property
    def unlocked_ids(self) -> List[str]:
        return [a.definition.id for a in self.achievements if a.unlocked]

    @property
    def earned_reward_points(self) -> int:
        return sum(a.definition.reward_points for a in self.achievements if a.unlocked)

    def with_persisted(self, rows: Sequence[AchievementUnlock]) -> "EvaluationResult":
        """Copy stored unlock timestamps back onto the freshly unlocked entries."""
        stamps = {r.achievement_id: r.unlocked_at for r in rows if r.unlocked_at}
        for item in self.achievements:
            if item.newly_unlocked and item.definition.id in stamps:
                item.unlocked_at = stamps[item.definition.id]
        return self


def evaluate_achievements(
    student_id: str,
    snapshot: ProgressSnapshot,
    unlocks: Iterable[AchievementUnlock] = (),
    definitions: Sequence[AchievementDefinition] = ACHIEVEMENTS,
    context: Optional[EvaluationContext] = None,
    now: Optional[datetime] = None,
) -> EvaluationResult:
    context = context or EvaluationContext()
    now = now or datetime.now(timezone.utc)
    existing: Dict[str, AchievementUnlock] = {}
    for unlock in unlocks:
        existing.setdefault(unlock.achievement_id, unlock)

    result = EvaluationResult(student_id=student_id)
    for definition in definitions:
        progress = min(metric_for(definition, snapshot, context), definition.requirement)
        stored = existing.get(definition.id)
        if stored is not None:
            result.achievements.append(
                AchievementProgress(definition, progress, unlocked=True, unlocked_at=stored.unlocked_at)
            )
            continue
        crossed = progress >= definition.requirement
        item = AchievementProgress(definition, progress, unlocked=crossed)
        if crossed:
            item.unlocked_at = now
            item.newly_unlocked = True
            result.new_unlocks.append(AchievementUnlock(student_id, definition.id, now))
        result.achievements.append(item)
    return result


__all__ = [
    "AchievementUnlock",
    "AchievementProgress",
    "EvaluationContext",
    "EvaluationResult",
    "CATEGORY_METRICS",
    "SPECIAL_METRICS",
    "evaluate_achievements",
    "metric_for",
    "unlock_from_row",
]
