from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from app.core.config import Settings, get_settings
from app.features.progress.aggregator import ProgressSnapshot, aggregate_progress
from .definitions import ACHIEVEMENTS, AchievementDefinition
from .evaluator import EvaluationContext, EvaluationResult, evaluate_achievements
from .repository import AchievementsStore, achievements_repository
from .schemas import (
    AchievementDefinitionResponse,
    AchievementStatus,
    AchievementsResponse,
    ProgressResponse,
)

logger = logging.getLogger("achievements.service")


def _progress_response(student_id: str, snapshot: ProgressSnapshot) -> ProgressResponse:
    return ProgressResponse(
        student_id=student_id,
        total_points=snapshot.total_points,
        completed_count=snapshot.completed_count,
        perfect_score_count=snapshot.perfect_score_count,
        daily_completion_counts=dict(snapshot.daily_completion_counts),
        max_daily_completions=snapshot.max_daily_completions,
        streak=snapshot.streak,
    )


def _status_rows(result: EvaluationResult) -> List[AchievementStatus]:
    rows: List[AchievementStatus] = []
    for item in result.achievements:
        d = item.definition
        rows.append(
            AchievementStatus(
                id=d.id,
                title=d.title,
                description=d.description,
                icon=d.icon,
                category=d.category,
                requirement=d.requirement,
                reward_points=d.reward_points,
                progress=item.progress,
                progress_ratio=round(item.progress_ratio, 4),
                unlocked=item.unlocked,
                unlocked_at=item.unlocked_at,
                newly_unlocked=item.newly_unlocked,
            )
        )
    return rows


class AchievementsService:
    """Runs evaluation passes: fetch, compute, persist new unlocks once.

    Steps are awaited one after another. Two passes for the same student may
    race; duplicate inserts are left to the unique constraint on
    ``achievement_unlocks (student_id, achievement_id)``.
    """

    def __init__(
        self,
        repo: Optional[AchievementsStore] = None,
        settings: Optional[Settings] = None,
        definitions: Sequence[AchievementDefinition] = ACHIEVEMENTS,
    ):
        self.repo = repo or achievements_repository
        self.settings = settings or get_settings()
        self.definitions = tuple(definitions)
        self.log = logger

    def list_definitions(self) -> List[AchievementDefinitionResponse]:
        return [AchievementDefinitionResponse.model_validate(d) for d in self.definitions]

    def _aggregate(self, submissions, now: datetime) -> ProgressSnapshot:
        return aggregate_progress(
            submissions,
            now=now,
            include_incomplete=self.settings.points_include_incomplete,
            window_days=self.settings.streak_window_days,
            perfect_score=self.settings.perfect_score_threshold,
        )

    async def progress(self, student_id: str, now: Optional[datetime] = None) -> ProgressResponse:
        now = now or datetime.now(timezone.utc)
        submissions = await self.repo.fetch_submissions(student_id)
        return _progress_response(student_id, self._aggregate(submissions, now))

    async def evaluate(self, student_id: str, now: Optional[datetime] = None) -> AchievementsResponse:
        now = now or datetime.now(timezone.utc)
        submissions = await self.repo.fetch_submissions(student_id)
        unlocks = await self.repo.fetch_unlocks(student_id)
        context = EvaluationContext(has_action_challenges=await self.repo.has_action_challenges(student_id))

        snapshot = self._aggregate(submissions, now)
        result = evaluate_achievements(
            student_id,
            snapshot,
            unlocks=unlocks,
            definitions=self.definitions,
            context=context,
            now=now,
        )
        if result.new_unlocks:
            stored = await self.repo.persist_unlocks(result.new_unlocks)
            result.with_persisted(stored)
            self.log.info(
                "achievements_unlocked student_id=%s count=%d ids=%s",
                student_id,
                len(result.new_unlocks),
                ",".join(u.achievement_id for u in result.new_unlocks),
            )

        return AchievementsResponse(
            student_id=student_id,
            achievements=_status_rows(result),
            unlocked=result.unlocked_ids,
            new_unlocks=[u.achievement_id for u in result.new_unlocks],
            earned_reward_points=result.earned_reward_points,
            progress=_progress_response(student_id, snapshot),
        )


achievements_service = AchievementsService()


def get_achievements_service() -> AchievementsService:
    return achievements_service


__all__ = ["AchievementsService", "achievements_service", "get_achievements_service"]
