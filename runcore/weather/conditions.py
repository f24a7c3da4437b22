from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from runcore.io.models import WeatherObservation, WeatherType


class ConditionLabel(str, Enum):
    EXCELLENT = 'Excellent'
    GOOD = 'Good'
    FAIR = 'Fair'
    POOR = 'Poor'
    NOT_RECOMMENDED = 'Not Recommended'


CONDITION_COLORS = {
    ConditionLabel.EXCELLENT: '10B981',
    ConditionLabel.GOOD: '34D399',
    ConditionLabel.FAIR: 'FBBF24',
    ConditionLabel.POOR: 'F97316',
    ConditionLabel.NOT_RECOMMENDED: 'EF4444',
}

ADVERSE_CONDITIONS = {WeatherType.RAINY, WeatherType.SNOWY, WeatherType.STORMY}


@dataclass(frozen=True)
class ConditionRating:
    score: float
    label: ConditionLabel


def label_for_score(score: float) -> ConditionLabel:
    if score >= 80:
        return ConditionLabel.EXCELLENT
    if score >= 60:
        return ConditionLabel.GOOD
    if score >= 40:
        return ConditionLabel.FAIR
    if score >= 20:
        return ConditionLabel.POOR
    return ConditionLabel.NOT_RECOMMENDED


def score_conditions(obs: WeatherObservation) -> ConditionRating:
    """
    Runnability score, 0-100. Starts at 100 and applies additive
    adjustments; a 10-20°C day earns a +10 bonus that the final clamp caps.
    """
    score = 100.0
    temp = obs.temperature_c

    # --- temperature ---
    if temp < 0 or temp > 35:
        score -= 30
    elif temp < 5 or temp > 30:
        score -= 15
    elif 10 <= temp <= 20:
        score += 10

    # --- humidity ---
    if obs.humidity_pct > 85:
        score -= 20
    elif obs.humidity_pct > 70:
        score -= 10

    # --- wind ---
    if obs.wind_speed_kmh > 30:
        score -= 20
    elif obs.wind_speed_kmh > 20:
        score -= 10

    # --- condition category ---
    if obs.condition in ADVERSE_CONDITIONS:
        score -= 25
    elif obs.condition is WeatherType.WINDY:
        score -= 10
    elif obs.condition is WeatherType.SUNNY and temp > 25:
        score -= 10

    score = min(100.0, max(0.0, score))
    return ConditionRating(score=score, label=label_for_score(score))
