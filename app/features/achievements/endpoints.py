#Achievements feature - definitions, progress and unlock evaluation per student
from fastapi import APIRouter, HTTPException, Depends
from typing import List
from app.common.deps import STAFF_ROLES, CurrentUser, ensure_roles, get_current_user
from app.common.errors import DataAccessError
from .schemas import AchievementDefinitionResponse, AchievementsResponse, ProgressResponse
from .service import AchievementsService, get_achievements_service

router = APIRouter(prefix="/achievements", tags=["achievements"])

def _err(status: int, code: str, message: str):
    return HTTPException(status_code=status, detail={"error_code": code, "message": message})

def _ensure_can_view(student_id: str, current_user: CurrentUser) -> None:
    #students only see their own record; a student token without a student_id sees nothing
    if current_user.role == "student":
        if not current_user.student_id or current_user.student_id != student_id:
            raise _err(403, "E_FORBIDDEN", "students can only view their own achievements")
        return
    ensure_roles(current_user, *STAFF_ROLES)

#static table, same for every student
@router.get("/definitions", response_model=List[AchievementDefinitionResponse])
async def list_definitions(service: AchievementsService = Depends(get_achievements_service)):
    return service.list_definitions()

#evaluation pass - persists newly crossed achievements, so this GET writes unlock rows like the
#dashboard widget always did; new clients should call POST /check after a submission instead
@router.get("/students/{student_id}", response_model=AchievementsResponse)
async def get_student_achievements(
    student_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: AchievementsService = Depends(get_achievements_service),
):
    _ensure_can_view(student_id, current_user)
    try:
        return await service.evaluate(student_id)
    except DataAccessError as e:
        raise _err(502, "E_DATA_ACCESS", str(e))

#event driven trigger after a submission, same pass as the GET
@router.post("/students/{student_id}/check", response_model=AchievementsResponse)
async def check_achievements(
    student_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: AchievementsService = Depends(get_achievements_service),
):
    _ensure_can_view(student_id, current_user)
    try:
        return await service.evaluate(student_id)
    except DataAccessError as e:
        raise _err(502, "E_DATA_ACCESS", str(e))

#read only counters, nothing persisted
@router.get("/students/{student_id}/progress", response_model=ProgressResponse)
async def get_progress(
    student_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: AchievementsService = Depends(get_achievements_service),
):
    _ensure_can_view(student_id, current_user)
    try:
        return await service.progress(student_id)
    except DataAccessError as e:
        raise _err(502, "E_DATA_ACCESS", str(e))
