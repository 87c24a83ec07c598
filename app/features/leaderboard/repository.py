from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from app.common.errors import DataAccessError
from app.db.supabase import get_supabase

logger = logging.getLogger("leaderboard.repository")

_STUDENT_SELECT = (
    "id, nickname, class_id, "
    "classes(name, school_id, schools(name)), "
    "submissions(score, completed, submitted_at, created_at)"
)
_SCHOOL_SELECT = (
    "id, name, "
    "classes(id, students(id, submissions(score, completed, submitted_at, created_at)))"
)


class LeaderboardStore(Protocol):
    async def list_class_ids(self, teacher_id: Optional[str] = None, school_id: Optional[str] = None) -> List[str]: ...

    async def list_students(self, class_ids: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]: ...

    async def list_schools(self) -> List[Dict[str, Any]]: ...


class LeaderboardRepository:
    """Reads students and schools with their nested submission scores.

    Rows come back in whatever order PostgREST returns them; ordering is the
    ranker's job.
    """

    def __init__(self, client_factory: Optional[Callable[[], Awaitable[Any]]] = None):
        self._client_factory = client_factory or get_supabase

    async def _execute(self, query, op: str) -> List[Dict[str, Any]]:
        try:
            resp = await query
        except Exception as exc:
            logger.warning("supabase_%s_failed error=%s", op, exc)
            raise DataAccessError(op, str(exc)) from exc
        data = getattr(resp, "data", None)
        return data if isinstance(data, list) else []

    async def _client(self):
        return await self._client_factory()

    async def list_class_ids(self, teacher_id: Optional[str] = None, school_id: Optional[str] = None) -> List[str]:
        client = await self._client()
        query = client.table("classes").select("id")
        if teacher_id is not None:
            query = query.eq("teacher_id", teacher_id)
        if school_id is not None:
            query = query.eq("school_id", school_id)
        rows = await self._execute(query.execute(), op="classes.ids")
        return [str(r["id"]) for r in rows if r.get("id") is not None]

    async def list_students(self, class_ids: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        client = await self._client()
        query = client.table("students").select(_STUDENT_SELECT)
        if class_ids is not None:
            query = query.in_("class_id", list(class_ids))
        return await self._execute(query.execute(), op="students.with_submissions")

    async def list_schools(self) -> List[Dict[str, Any]]:
        client = await self._client()
        query = client.table("schools").select(_SCHOOL_SELECT)
        return await self._execute(query.execute(), op="schools.with_submissions")


leaderboard_repository = LeaderboardRepository()

__all__ = ["leaderboard_repository", "LeaderboardRepository", "LeaderboardStore"]
