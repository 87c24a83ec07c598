from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.core.config import Settings, get_settings
from app.features.progress.aggregator import calculate_streak, submission_from_row, total_points
from .ranker import SCHOOL_BADGES, STUDENT_BADGES, rank_entries
from .repository import LeaderboardStore, leaderboard_repository
from .schemas import LeaderboardScope, SchoolRankingResponse, StudentRankingResponse

logger = logging.getLogger("leaderboard.service")

UNKNOWN_SCHOOL = "Unknown School"


@dataclass
class _StudentTotals:
    student_id: str
    name: str
    school: str
    points: float
    streak: int


@dataclass
class _SchoolTotals:
    school_id: str
    name: str
    points: float
    students: int

    @property
    def avg_points(self) -> int:
        if self.students <= 0:
            return 0
        # half-up, matching the web client's Math.round
        return int(math.floor(self.points / self.students + 0.5))


def _school_name(student: Dict[str, Any]) -> str:
    cls = student.get("classes") or {}
    school = cls.get("schools") or {}
    return school.get("name") or cls.get("name") or UNKNOWN_SCHOOL


class LeaderboardService:
    def __init__(self, repo: Optional[LeaderboardStore] = None, settings: Optional[Settings] = None):
        self.repo = repo or leaderboard_repository
        self.settings = settings or get_settings()

    def _points(self, rows: Sequence[Dict[str, Any]]) -> float:
        records = [submission_from_row(r) for r in rows or []]
        return total_points(records, include_incomplete=self.settings.points_include_incomplete)

    async def _resolve_class_ids(self, scope: LeaderboardScope) -> Optional[List[str]]:
        if scope.class_id:
            return [scope.class_id]
        if scope.teacher_id:
            return await self.repo.list_class_ids(teacher_id=scope.teacher_id)
        if scope.school_id:
            return await self.repo.list_class_ids(school_id=scope.school_id)
        return None

    async def student_leaderboard(
        self,
        scope: Optional[LeaderboardScope] = None,
        current_student_id: Optional[str] = None,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[StudentRankingResponse]:
        scope = scope or LeaderboardScope()
        now = now or datetime.now(timezone.utc)
        class_ids = await self._resolve_class_ids(scope)
        if class_ids is not None and not class_ids:
            return []
        students = await self.repo.list_students(class_ids)

        totals: List[_StudentTotals] = []
        for student in students:
            rows = student.get("submissions") or []
            records = [submission_from_row(r) for r in rows]
            totals.append(
                _StudentTotals(
                    student_id=str(student.get("id")),
                    name=student.get("nickname") or "",
                    school=_school_name(student),
                    points=self._points(rows),
                    streak=calculate_streak(records, now=now, window_days=self.settings.streak_window_days),
                )
            )

        ranked = rank_entries(totals, total=lambda t: t.points, key=lambda t: t.student_id, badges=STUDENT_BADGES)
        if limit is not None:
            ranked = ranked[:limit]
        logger.debug("student_leaderboard entries=%d scope=%s", len(ranked), scope.model_dump(exclude_none=True))
        return [
            StudentRankingResponse(
                rank=entry.rank,
                student_id=entry.item.student_id,
                name=entry.item.name,
                school=entry.item.school,
                points=entry.total,
                streak=entry.item.streak,
                badge=entry.badge,
                is_current_user=current_student_id is not None and entry.item.student_id == current_student_id,
            )
            for entry in ranked
        ]

    async def school_leaderboard(self, limit: Optional[int] = None) -> List[SchoolRankingResponse]:
        schools = await self.repo.list_schools()
        totals: List[_SchoolTotals] = []
        for school in schools:
            points: float = 0
            count = 0
            for cls in school.get("classes") or []:
                for student in cls.get("students") or []:
                    count += 1
                    points += self._points(student.get("submissions") or [])
            totals.append(
                _SchoolTotals(school_id=str(school.get("id")), name=school.get("name") or "", points=points, students=count)
            )

        ranked = rank_entries(totals, total=lambda t: t.points, key=lambda t: t.school_id, badges=SCHOOL_BADGES)
        if limit is not None:
            ranked = ranked[:limit]
        return [
            SchoolRankingResponse(
                rank=entry.rank,
                school_id=entry.item.school_id,
                name=entry.item.name,
                total_points=entry.total,
                students=entry.item.students,
                avg_points=entry.item.avg_points,
                badge=entry.badge,
            )
            for entry in ranked
        ]


leaderboard_service = LeaderboardService()


def get_leaderboard_service() -> LeaderboardService:
    return leaderboard_service


__all__ = ["LeaderboardService", "leaderboard_service", "get_leaderboard_service"]
