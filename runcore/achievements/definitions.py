from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Tier(str, Enum):
    BRONZE = 'bronze'
    SILVER = 'silver'
    GOLD = 'gold'
    PLATINUM = 'platinum'
    DIAMOND = 'diamond'


TIER_COLORS = {
    Tier.BRONZE: 'CD7F32',
    Tier.SILVER: 'C0C0C0',
    Tier.GOLD: 'FFD700',
    Tier.PLATINUM: 'E5E4E2',
    Tier.DIAMOND: 'B9F2FF',
}


class Category(str, Enum):
    DISTANCE = 'distance'
    SPEED = 'speed'
    CONSISTENCY = 'consistency'
    MILESTONES = 'milestones'
    CHALLENGES = 'challenges'
    SPECIAL = 'special'


CATEGORY_ICONS = {
    Category.DISTANCE: 'figure.run',
    Category.SPEED: 'bolt.fill',
    Category.CONSISTENCY: 'calendar.badge.plus',
    Category.MILESTONES: 'flag.fill',
    Category.CHALLENGES: 'trophy.fill',
    Category.SPECIAL: 'star.fill',
}


class RequirementType(str, Enum):
    TOTAL_DISTANCE = 'total_distance'
    SINGLE_RUN_DISTANCE = 'single_run_distance'
    TOTAL_RUNS = 'total_runs'
    CONSECUTIVE_DAYS = 'consecutive_days'
    PACE_BELOW_THRESHOLD = 'pace_below_threshold'
    MONTHLY_DISTANCE = 'monthly_distance'
    WEEKLY_RUNS = 'weekly_runs'
    CHALLENGES_COMPLETED = 'challenges_completed'


class ResetPolicy(str, Enum):
    NONE = 'none'              # earned once, never re-evaluated downward
    MILESTONE = 'milestone'    # next target = previous target + threshold
    PERIOD = 'period'          # counter restarts each week / month


class Period(str, Enum):
    WEEK = 'week'
    MONTH = 'month'


class ChallengeType(str, Enum):
    DISTANCE = 'distance'
    FREQUENCY = 'frequency'
    DURATION = 'duration'
    STREAK = 'streak'
    ELEVATION = 'elevation'
    SPEED = 'speed'


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    name: str
    description: str
    icon: str
    category: Category
    tier: Tier
    requirement: RequirementType
    threshold: float
    points: int
    repeatable: bool = False
    reset_policy: ResetPolicy = ResetPolicy.NONE
    reset_period: Optional[Period] = None


@dataclass(frozen=True)
class ChallengeDefinition:
    id: str
    name: str
    description: str
    type: ChallengeType
    period: Period
    target: float
    icon: str
    badge: str
    points: int
