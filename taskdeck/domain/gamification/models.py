from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional


class AchievementCategory(str, Enum):
    TASKS = "tasks"
    HABITS = "habits"
    FOCUS = "focus"
    SPECIAL = "special"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


@dataclass(frozen=True)
class Achievement:
    key: str
    title: str
    description: str
    progress: int
    max_progress: int
    category: AchievementCategory
    rarity: Rarity
    points: int

    @property
    def unlocked(self) -> bool:
        return self.progress >= self.max_progress


@dataclass(frozen=True)
class LevelInfo:
    points: int
    level: int
    xp: int
    xp_to_next: int


@dataclass(frozen=True)
class DailyChallenge:
    key: str
    title: str
    description: str
    progress: int
    max_progress: int
    reward_xp: int
    expires_at: datetime

    @property
    def completed(self) -> bool:
        return self.progress >= self.max_progress


@dataclass(frozen=True)
class ProgressReport:
    streak: int
    efficiency: int
    achievements: List[Achievement]
    level: LevelInfo
    challenges: List[DailyChallenge]
    newly_unlocked: Optional[List[Achievement]] = None
