from __future__ import annotations
from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime

from .definitions import AchievementCategory


#Static definition table
class AchievementDefinitionResponse(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    requirement: int
    reward_points: int

    class Config:
        from_attributes = True


#Progress snapshot - read only view for dashboards
class ProgressResponse(BaseModel):
    student_id: str
    total_points: float
    completed_count: int
    perfect_score_count: int
    daily_completion_counts: Dict[str, int] = {}
    max_daily_completions: int
    streak: int


#Per achievement state after an evaluation pass
class AchievementStatus(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    requirement: int
    reward_points: int
    progress: float
    progress_ratio: float
    unlocked: bool
    unlocked_at: Optional[datetime] = None
    newly_unlocked: bool = False


class AchievementsResponse(BaseModel):
    student_id: str
    achievements: List[AchievementStatus]
    unlocked: List[str]
    new_unlocks: List[str] = []
    earned_reward_points: int
    progress: ProgressResponse
