from pydantic import BaseModel
from typing import Optional


class StudentRankingResponse(BaseModel):
    rank: int
    student_id: str
    name: str
    school: str
    points: float
    streak: int
    badge: str
    is_current_user: bool = False


class SchoolRankingResponse(BaseModel):
    rank: int
    school_id: str
    name: str
    total_points: float
    students: int
    avg_points: int
    badge: str


class LeaderboardScope(BaseModel):
    class_id: Optional[str] = None
    teacher_id: Optional[str] = None
    school_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.class_id or self.teacher_id or self.school_id)
