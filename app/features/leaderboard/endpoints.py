from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.common.deps import STAFF_ROLES, CurrentUser, ensure_roles, get_current_user
from app.common.errors import DataAccessError
from app.core.config import get_settings
from .schemas import LeaderboardScope, SchoolRankingResponse, StudentRankingResponse
from .service import LeaderboardService, get_leaderboard_service

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


def _err(status: int, code: str, message: str):
    return HTTPException(status_code=status, detail={"error_code": code, "message": message})


def _default_scope(scope: LeaderboardScope, user: CurrentUser) -> LeaderboardScope:
    """Fill in the viewer's own scope when no explicit filter was given.

    Teacher and school filters are staff only; students rank within a class.
    """
    if scope.teacher_id or scope.school_id:
        ensure_roles(user, *STAFF_ROLES)
    if not scope.is_empty:
        return scope
    if user.role == "teacher":
        return LeaderboardScope(teacher_id=user.id)
    if user.role == "school_admin" and user.school_id:
        return LeaderboardScope(school_id=user.school_id)
    raise _err(400, "E_SCOPE_REQUIRED", "class_id, teacher_id or school_id is required")


@router.get("/students", response_model=List[StudentRankingResponse])
async def student_leaderboard(
    class_id: Optional[str] = None,
    teacher_id: Optional[str] = None,
    school_id: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    current_user: CurrentUser = Depends(get_current_user),
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    scope = _default_scope(LeaderboardScope(class_id=class_id, teacher_id=teacher_id, school_id=school_id), current_user)
    try:
        return await service.student_leaderboard(
            scope,
            current_student_id=current_user.student_id,
            limit=limit or get_settings().leaderboard_default_limit,
        )
    except DataAccessError as e:
        raise _err(502, "E_DATA_ACCESS", str(e))


@router.get("/schools", response_model=List[SchoolRankingResponse])
async def school_leaderboard(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    current_user: CurrentUser = Depends(get_current_user),
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    try:
        return await service.school_leaderboard(limit=limit or get_settings().leaderboard_default_limit)
    except DataAccessError as e:
        raise _err(502, "E_DATA_ACCESS", str(e))
