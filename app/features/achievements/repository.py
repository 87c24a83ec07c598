from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from app.common.errors import DataAccessError
from app.db.supabase import get_supabase
from app.features.progress.aggregator import SubmissionRecord, submission_from_row
from .evaluator import AchievementUnlock, unlock_from_row

logger = logging.getLogger("achievements.repository")

ACTION_CATEGORY = "action"


class AchievementsStore(Protocol):
    """Collaborator contract for one evaluation pass."""

    async def fetch_submissions(self, student_id: str) -> List[SubmissionRecord]: ...

    async def fetch_unlocks(self, student_id: str) -> List[AchievementUnlock]: ...

    async def has_action_challenges(self, student_id: str) -> bool: ...

    async def persist_unlocks(self, unlocks: Sequence[AchievementUnlock]) -> List[AchievementUnlock]: ...


def _rows(resp: Any) -> List[Dict[str, Any]]:
    data = getattr(resp, "data", None)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return []


class AchievementsRepository:
    """Supabase access for the `submissions`, `achievement_unlocks`, `students`
    and `assignments` tables.

    Unlike the read-mostly dashboard helpers, failures here are not hidden: a
    failed call is logged and re-raised as ``DataAccessError`` so that an
    evaluation pass never computes unlocks from a partial view.
    """

    def __init__(self, client_factory: Optional[Callable[[], Awaitable[Any]]] = None):
        self._client_factory = client_factory or get_supabase

    # --- Generic helpers -------------------------------------------------

    async def _execute(self, query, op: str) -> Any:
        """Await a Supabase query, turning client failures into DataAccessError."""

        try:
            return await query
        except Exception as exc:
            logger.warning("supabase_%s_failed error=%s", op, exc)
            raise DataAccessError(op, str(exc)) from exc

    async def _client(self):
        return await self._client_factory()

    # --- Submissions -----------------------------------------------------

    async def fetch_submissions(self, student_id: str) -> List[SubmissionRecord]:
        client = await self._client()
        query = client.table("submissions").select("*").eq("student_id", student_id)
        resp = await self._execute(query.execute(), op="submissions.by_student")
        return [submission_from_row(row) for row in _rows(resp)]

    # --- Unlocks ---------------------------------------------------------

    async def fetch_unlocks(self, student_id: str) -> List[AchievementUnlock]:
        client = await self._client()
        query = client.table("achievement_unlocks").select("*").eq("student_id", student_id)
        resp = await self._execute(query.execute(), op="achievement_unlocks.by_student")
        return [unlock_from_row(row) for row in _rows(resp)]

    async def persist_unlocks(self, unlocks: Sequence[AchievementUnlock]) -> List[AchievementUnlock]:
        """Insert all new unlock rows in a single write."""
        payloads = [u.to_row() for u in unlocks]
        if not payloads:
            return []
        client = await self._client()
        resp = await self._execute(
            client.table("achievement_unlocks").insert(payloads).execute(),
            op="achievement_unlocks.batch_insert",
        )
        stored = [unlock_from_row(row) for row in _rows(resp)]
        # PostgREST may be configured to return minimal responses
        return stored or list(unlocks)

    # --- Challenges ------------------------------------------------------

    async def fetch_class_id(self, student_id: str) -> Optional[str]:
        client = await self._client()
        query = client.table("students").select("id, class_id").eq("id", student_id)
        resp = await self._execute(query.execute(), op="students.single")
        rows = _rows(resp)
        if not rows:
            return None
        class_id = rows[0].get("class_id")
        return str(class_id) if class_id else None

    async def has_action_challenges(self, student_id: str) -> bool:
        """Whether the student's class has any assignment tagged with the action category."""
        class_id = await self.fetch_class_id(student_id)
        if not class_id:
            return False
        client = await self._client()
        query = client.table("assignments").select("id, config").eq("class_id", class_id)
        resp = await self._execute(query.execute(), op="assignments.by_class")
        for row in _rows(resp):
            config = row.get("config")
            if isinstance(config, dict) and config.get("category") == ACTION_CATEGORY:
                return True
        return False


achievements_repository = AchievementsRepository()

__all__ = ["achievements_repository", "AchievementsRepository", "AchievementsStore"]
