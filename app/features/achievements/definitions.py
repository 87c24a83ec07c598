from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from app.common.errors import ComputationError


class AchievementCategory(str, Enum):
    points = "points"
    streak = "streak"
    completion = "completion"
    special = "special"


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    requirement: int
    reward_points: int

    def __post_init__(self) -> None:
        if self.requirement <= 0:
            raise ComputationError(f"achievement {self.id} needs a positive requirement")


ACHIEVEMENTS: Tuple[AchievementDefinition, ...] = (
    # Points
    AchievementDefinition("first_points", "First Steps", "Earn your first 10 points", "🌟", AchievementCategory.points, 10, 5),
    AchievementDefinition("point_collector", "Point Collector", "Earn 100 points", "💰", AchievementCategory.points, 100, 10),
    AchievementDefinition("point_master", "Point Master", "Earn 500 points", "💎", AchievementCategory.points, 500, 25),
    AchievementDefinition("point_legend", "Point Legend", "Earn 1000 points", "👑", AchievementCategory.points, 1000, 50),
    # Completion
    AchievementDefinition("first_completion", "Getting Started", "Complete your first challenge", "🎯", AchievementCategory.completion, 1, 10),
    AchievementDefinition("dedicated_learner", "Dedicated Learner", "Complete 5 challenges", "📚", AchievementCategory.completion, 5, 20),
    AchievementDefinition("challenge_champion", "Challenge Champion", "Complete 10 challenges", "🏆", AchievementCategory.completion, 10, 40),
    AchievementDefinition("completion_master", "Completion Master", "Complete 20 challenges", "🎖️", AchievementCategory.completion, 20, 75),
    # Streak
    AchievementDefinition("daily_learner", "Daily Learner", "Complete challenges for 3 days in a row", "📅", AchievementCategory.streak, 3, 15),
    AchievementDefinition("week_warrior", "Week Warrior", "Complete challenges for 7 days in a row", "⚔️", AchievementCategory.streak, 7, 30),
    AchievementDefinition("month_master", "Month Master", "Complete challenges for 30 days in a row", "🗓️", AchievementCategory.streak, 30, 100),
    # Special
    AchievementDefinition("perfect_score", "Perfect Score", "Get a perfect score on any quiz", "💯", AchievementCategory.special, 1, 25),
    AchievementDefinition("speed_demon", "Speed Demon", "Complete 5 challenges in one day", "⚡", AchievementCategory.special, 5, 35),
    AchievementDefinition("eco_expert", "Eco Expert", "Complete all environmental challenges", "🌱", AchievementCategory.special, 1, 50),
)

ACHIEVEMENTS_BY_ID: Dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENTS}


__all__ = [
    "AchievementCategory",
    "AchievementDefinition",
    "ACHIEVEMENTS",
    "ACHIEVEMENTS_BY_ID",
]
