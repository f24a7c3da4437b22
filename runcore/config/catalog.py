"""
Achievement / challenge registry.

The catalog is plain YAML (see achievements.yml next to this module) so the
set of badges can change without touching code. It is parsed once and kept as
an immutable registry of frozen definitions.
"""
from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from loguru import logger

from runcore.achievements.definitions import (
    AchievementDefinition,
    Category,
    ChallengeDefinition,
    ChallengeType,
    Period,
    RequirementType,
    ResetPolicy,
    Tier,
)
from runcore.config.settings import get_settings


@dataclass(frozen=True)
class Catalog:
    version: int
    achievements: Tuple[AchievementDefinition, ...]
    challenges: Tuple[ChallengeDefinition, ...]

    def achievement(self, achievement_id: str) -> Optional[AchievementDefinition]:
        for definition in self.achievements:
            if definition.id == achievement_id:
                return definition
        return None


def _achievement_from_dict(raw: Dict[str, Any]) -> AchievementDefinition:
    threshold = float(raw['threshold'])
    if threshold <= 0:
        raise ValueError(f"Achievement {raw['id']!r} needs a positive threshold, got {threshold}")

    repeatable = bool(raw.get('repeatable', False))
    reset_policy = ResetPolicy(raw.get('reset_policy', 'milestone' if repeatable else 'none'))
    reset_period = Period(raw['reset_period']) if raw.get('reset_period') else None
    if reset_policy is ResetPolicy.PERIOD and reset_period is None:
        raise ValueError(f"Achievement {raw['id']!r} uses reset_policy 'period' without reset_period")
    if reset_policy is ResetPolicy.MILESTONE and raw['requirement'] == RequirementType.PACE_BELOW_THRESHOLD.value:
        raise ValueError(f"Achievement {raw['id']!r}: milestone resets need a greater-is-better requirement")

    return AchievementDefinition(
        id=str(raw['id']),
        name=str(raw['name']),
        description=str(raw.get('description', '')),
        icon=str(raw.get('icon', '')),
        category=Category(raw['category']),
        tier=Tier(raw['tier']),
        requirement=RequirementType(raw['requirement']),
        threshold=threshold,
        points=int(raw.get('points', 0)),
        repeatable=repeatable,
        reset_policy=reset_policy,
        reset_period=reset_period,
    )


def _challenge_from_dict(raw: Dict[str, Any]) -> ChallengeDefinition:
    return ChallengeDefinition(
        id=str(raw['id']),
        name=str(raw['name']),
        description=str(raw.get('description', '')),
        type=ChallengeType(raw['type']),
        period=Period(raw['period']),
        target=float(raw['target']),
        icon=str(raw.get('icon', '')),
        badge=str(raw.get('badge', '')),
        points=int(raw.get('points', 0)),
    )


def load_catalog(path: Path) -> Catalog:
    """
    Parse a catalog file.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: on unknown enum values, duplicate ids or bad thresholds
    """
    if not path.exists():
        raise FileNotFoundError(f'Achievement catalog not found at {path}')

    with path.open('r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    achievements = tuple(_achievement_from_dict(a) for a in raw.get('achievements', []))
    challenges = tuple(_challenge_from_dict(c) for c in raw.get('challenges', []))

    ids = [a.id for a in achievements]
    if len(ids) != len(set(ids)):
        raise ValueError(f'Duplicate achievement ids in {path}')

    logger.info(
        f'Loaded catalog v{raw.get("version", 1)}: '
        f'{len(achievements)} achievements, {len(challenges)} challenges'
    )
    return Catalog(version=int(raw.get('version', 1)), achievements=achievements, challenges=challenges)


@lru_cache
def get_catalog() -> Catalog:
    return load_catalog(Path(get_settings().catalog_path))
