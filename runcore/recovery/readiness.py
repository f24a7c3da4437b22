from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple

from runcore.io.models import RecoveryInput

# component -> weight (renormalized over whatever is present)
WEIGHTS: Dict[str, float] = {
    'hrv': 0.35,
    'resting_hr': 0.25,
    'sleep': 0.25,
    'fatigue': 0.15,
}
NEUTRAL_SCORE = 50.0

# population fallbacks when no personal baseline is known
HRV_REFERENCE_MS = 50.0
RESTING_HR_REFERENCE = 60.0


class RecoveryStatus(str, Enum):
    FULLY_RECOVERED = 'fully_recovered'
    RECOVERED = 'recovered'
    RECOVERING = 'recovering'
    FATIGUED = 'fatigued'
    OVERREACHED = 'overreached'


RECOVERY_STATUS_STYLE = {
    RecoveryStatus.FULLY_RECOVERED: ('battery.100.bolt', '10B981'),
    RecoveryStatus.RECOVERED: ('battery.75', '34D399'),
    RecoveryStatus.RECOVERING: ('battery.50', 'FBBF24'),
    RecoveryStatus.FATIGUED: ('battery.25', 'F97316'),
    RecoveryStatus.OVERREACHED: ('battery.0', 'EF4444'),
}


class FatigueLevel(str, Enum):
    NONE = 'none'
    LOW = 'low'
    MODERATE = 'moderate'
    HIGH = 'high'
    SEVERE = 'severe'


class TipPriority(int, Enum):
    HIGH = 1
    MEDIUM = 2
    LOW = 3


@dataclass(frozen=True)
class SuggestedWorkout:
    type: str
    duration_min: int
    intensity: str
    description: str


@dataclass(frozen=True)
class RecoveryTip:
    icon: str
    title: str
    description: str
    priority: TipPriority


@dataclass(frozen=True)
class RecoveryAdvice:
    status: RecoveryStatus
    readiness_score: float
    fatigue_level: FatigueLevel
    recommendation: str
    suggested_workout: Optional[SuggestedWorkout]
    tips: List[RecoveryTip]
    estimated_full_recovery: datetime
    component_scores: Dict[str, float] = field(default_factory=dict)
    limitations: List[str] = field(default_factory=list)


# status -> (fatigue level, recommendation, workout)
_GUIDANCE: Dict[RecoveryStatus, Tuple[FatigueLevel, str, Optional[SuggestedWorkout]]] = {
    RecoveryStatus.FULLY_RECOVERED: (
        FatigueLevel.NONE,
        "You're fully recovered and ready for any workout. Consider a challenging session like intervals or a tempo run.",
        SuggestedWorkout('Intervals', 45, 'High', '6x800m at 5K pace with 400m jog recovery'),
    ),
    RecoveryStatus.RECOVERED: (
        FatigueLevel.LOW,
        'Good recovery status. You can handle a moderate to hard workout today.',
        SuggestedWorkout('Tempo Run', 40, 'Moderate-High', '20 minutes at threshold pace'),
    ),
    RecoveryStatus.RECOVERING: (
        FatigueLevel.MODERATE,
        'Still recovering from recent efforts. An easy run or cross-training would be ideal.',
        SuggestedWorkout('Easy Run', 30, 'Low', 'Conversational pace, focus on form'),
    ),
    RecoveryStatus.FATIGUED: (
        FatigueLevel.HIGH,
        'Your body needs rest. Consider a rest day or very light activity.',
        SuggestedWorkout('Active Recovery', 20, 'Very Low', 'Light walk or gentle yoga'),
    ),
    RecoveryStatus.OVERREACHED: (
        FatigueLevel.SEVERE,
        'Signs of overtraining. Take 1-2 complete rest days before resuming training.',
        None,
    ),
}

_TIPS: List[RecoveryTip] = [
    RecoveryTip('bed.double.fill', 'Prioritize Sleep', 'Aim for 7-9 hours of quality sleep tonight', TipPriority.HIGH),
    RecoveryTip('drop.fill', 'Stay Hydrated', 'Drink water consistently throughout the day', TipPriority.HIGH),
    RecoveryTip('fork.knife', 'Fuel Recovery', 'Eat protein and carbs within 30 min of running', TipPriority.MEDIUM),
    RecoveryTip('figure.roll', 'Foam Roll', '10 minutes of foam rolling on major muscle groups', TipPriority.LOW),
]


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def _hrv_score(hrv_ms: float, baseline_ms: float) -> float:
    """At baseline -> 75; +10% above baseline -> 100; -20% -> 25."""
    if baseline_ms <= 0:
        baseline_ms = HRV_REFERENCE_MS
    ratio = hrv_ms / baseline_ms
    return _clamp(75.0 + (ratio - 1.0) * 250.0)


def _resting_hr_score(rhr: float, baseline: float) -> float:
    """Each bpm above baseline costs 5 points; at baseline -> 75."""
    return _clamp(75.0 - (rhr - baseline) * 5.0)


def _fatigue_score(fatigue: float) -> float:
    return _clamp(100.0 - fatigue * 10.0)


def classify_readiness(score: float) -> RecoveryStatus:
    if score >= 85:
        return RecoveryStatus.FULLY_RECOVERED
    if score >= 70:
        return RecoveryStatus.RECOVERED
    if score >= 50:
        return RecoveryStatus.RECOVERING
    if score >= 30:
        return RecoveryStatus.FATIGUED
    return RecoveryStatus.OVERREACHED


def readiness_score(snapshot: RecoveryInput) -> Tuple[float, Dict[str, float], List[str]]:
    '''
    Weighted composite of whatever components are present.

    Returns (score, component_scores, limitations). With no components at all
    the score is the neutral 50.
    '''
    components: Dict[str, float] = {}
    limitations: List[str] = []

    # --- A) HRV ---
    if snapshot.hrv_ms is None:
        limitations.append('Missing HRV; readiness computed without it.')
    else:
        if snapshot.hrv_baseline_ms is None:
            limitations.append(f'No HRV baseline; using reference {HRV_REFERENCE_MS:.0f} ms.')
        components['hrv'] = _hrv_score(snapshot.hrv_ms, snapshot.hrv_baseline_ms or HRV_REFERENCE_MS)

    # --- B) resting heart rate ---
    if snapshot.resting_hr is None:
        limitations.append('Missing resting heart rate; readiness computed without it.')
    else:
        if snapshot.resting_hr_baseline is None:
            limitations.append(f'No resting HR baseline; using reference {RESTING_HR_REFERENCE:.0f} bpm.')
        components['resting_hr'] = _resting_hr_score(
            snapshot.resting_hr, snapshot.resting_hr_baseline or RESTING_HR_REFERENCE
        )

    # --- C) sleep quality ---
    if snapshot.sleep_quality is None:
        limitations.append('Missing sleep quality; readiness computed without it.')
    else:
        components['sleep'] = _clamp(snapshot.sleep_quality)

    # --- D) self-reported fatigue ---
    if snapshot.fatigue is None:
        limitations.append('Missing self-reported fatigue; readiness computed without it.')
    else:
        components['fatigue'] = _fatigue_score(snapshot.fatigue)

    total_weight = sum(WEIGHTS[k] for k in components)
    if total_weight <= 0:
        return NEUTRAL_SCORE, components, limitations

    score = sum(WEIGHTS[k] * v for k, v in components.items()) / total_weight
    return _clamp(round(score, 1)), components, limitations


def assess_recovery(snapshot: Optional[RecoveryInput], now: Optional[datetime] = None) -> RecoveryAdvice:
    """
    Readiness + status + advice from the latest biometric snapshot.
    Never raises; a missing snapshot is the all-missing case.
    """
    now = now or datetime.now()
    score, components, limitations = readiness_score(snapshot or RecoveryInput())
    status = classify_readiness(score)
    fatigue_level, recommendation, workout = _GUIDANCE[status]

    return RecoveryAdvice(
        status=status,
        readiness_score=score,
        fatigue_level=fatigue_level,
        recommendation=recommendation,
        suggested_workout=workout,
        tips=sorted(_TIPS, key=lambda t: t.priority),
        estimated_full_recovery=now + timedelta(hours=(100.0 - score) / 3.0),
        component_scores=components,
        limitations=sorted(set(limitations)),
    )
