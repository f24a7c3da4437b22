from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Sequence, Tuple

from runcore.achievements.definitions import ChallengeDefinition, ChallengeType, Period
from runcore.io.models import RunRecord
from runcore.metrics.compute_metrics import _month_start, _week_start

SPEED_CHALLENGE_PACE_S_PER_KM = 300.0  # 5:00/km


@dataclass(frozen=True)
class ChallengeProgress:
    definition: ChallengeDefinition
    start: datetime
    end: datetime
    progress: float
    is_completed: bool


def challenge_window(period: Period, now: datetime) -> Tuple[datetime, datetime]:
    if period is Period.WEEK:
        start = _week_start(now)
        return start, start + timedelta(days=7) - timedelta(microseconds=1)
    start = _month_start(now)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(microseconds=1)


def days_remaining(challenge: ChallengeProgress, now: datetime) -> int:
    return max(0, (challenge.end.date() - now.date()).days)


def progress_percentage(challenge: ChallengeProgress) -> float:
    if challenge.definition.target <= 0:
        return 100.0
    return min(challenge.progress / challenge.definition.target * 100.0, 100.0)


def _daily_streak_from(start: datetime, now: datetime, runs: Sequence[RunRecord]) -> int:
    run_days = {r.start_time.date() for r in runs}
    day = start.date()
    streak = 0
    while day <= now.date() and day in run_days:
        streak += 1
        day += timedelta(days=1)
    return streak


def _challenge_value(definition: ChallengeDefinition, runs: Sequence[RunRecord], start: datetime, now: datetime) -> float:
    kind = definition.type
    if kind is ChallengeType.DISTANCE:
        return sum(r.distance_km for r in runs)
    if kind is ChallengeType.FREQUENCY:
        return float(len(runs))
    if kind is ChallengeType.DURATION:
        return sum(r.duration_s for r in runs) / 60.0
    if kind is ChallengeType.ELEVATION:
        return sum(r.elevation_gain_m or 0.0 for r in runs)
    if kind is ChallengeType.SPEED:
        return float(sum(
            1 for r in runs
            if r.pace_s_per_km is not None and r.pace_s_per_km < SPEED_CHALLENGE_PACE_S_PER_KM
        ))
    if kind is ChallengeType.STREAK:
        return float(_daily_streak_from(start, now, runs))
    raise ValueError(f'Unknown challenge type: {kind}')


def evaluate_challenges(
    definitions: Iterable[ChallengeDefinition],
    runs: Sequence[RunRecord],
    now: datetime,
) -> List[ChallengeProgress]:
    '''
    Progress of each time-boxed challenge over the week / month containing
    `now`. Only runs inside the window and not after `now` count.
    '''
    out: List[ChallengeProgress] = []
    for definition in definitions:
        start, end = challenge_window(definition.period, now)
        relevant = [r for r in runs if start <= r.start_time <= min(end, now)]
        value = _challenge_value(definition, relevant, start, now)
        out.append(ChallengeProgress(
            definition=definition,
            start=start,
            end=end,
            progress=value,
            is_completed=value >= definition.target,
        ))
    return out
