from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from runcore.achievements.definitions import (
    AchievementDefinition,
    Period,
    RequirementType,
    ResetPolicy,
)
from runcore.metrics.compute_metrics import RunTotals, _month_start, _week_start

PACE_AT_THRESHOLD_PROGRESS = 0.99


@dataclass(frozen=True)
class AchievementAggregates:
    totals: RunTotals
    current_streak: int = 0
    challenges_completed: int = 0


@dataclass(frozen=True)
class Achievement:
    definition: AchievementDefinition
    current_value: float = 0.0
    progress: float = 0.0                      # 0-1 toward next_milestone
    is_unlocked: bool = False
    unlocked_date: Optional[datetime] = None   # most recent time it was earned
    times_earned: int = 0
    next_milestone: float = 0.0
    last_reset_date: Optional[datetime] = None


def progress_percentage(achievement: Achievement) -> float:
    return min(achievement.progress * 100.0, 100.0)


def total_points(achievements: Iterable[Achievement]) -> int:
    return sum(a.definition.points * a.times_earned for a in achievements)


def newly_earned(previous: Iterable[Achievement], current: Iterable[Achievement]) -> List[Achievement]:
    before = {a.definition.id: a.times_earned for a in previous}
    return [a for a in current if a.times_earned > before.get(a.definition.id, 0)]


def _requirement_value(definition: AchievementDefinition, agg: AchievementAggregates) -> Optional[float]:
    t = agg.totals
    req = definition.requirement
    if req is RequirementType.TOTAL_DISTANCE:
        return t.total_distance_km
    if req is RequirementType.SINGLE_RUN_DISTANCE:
        return t.longest_run_km
    if req is RequirementType.TOTAL_RUNS:
        return float(t.total_runs)
    if req is RequirementType.CONSECUTIVE_DAYS:
        return float(agg.current_streak)
    if req is RequirementType.PACE_BELOW_THRESHOLD:
        return t.fastest_pace_s_per_km
    if req is RequirementType.MONTHLY_DISTANCE:
        return t.month_distance_km
    if req is RequirementType.WEEKLY_RUNS:
        return float(t.week_runs)
    if req is RequirementType.CHALLENGES_COMPLETED:
        return float(agg.challenges_completed)
    raise ValueError(f'Unknown requirement type: {req}')


def _progress(definition: AchievementDefinition, value: Optional[float], target: float) -> float:
    if value is None or target <= 0:
        return 0.0
    if definition.requirement is RequirementType.PACE_BELOW_THRESHOLD:
        # lower is better: only a pace strictly under the threshold completes
        if value <= 0:
            return 0.0
        if value < target:
            return 1.0
        return min(target / value, PACE_AT_THRESHOLD_PROGRESS)
    return max(0.0, min(value / target, 1.0))


def _period_start(ref: datetime, period: Period) -> datetime:
    return _week_start(ref) if period is Period.WEEK else _month_start(ref)


def _rebase(prev: Achievement, definition: AchievementDefinition) -> Achievement:
    '''
    Carry earned state over to an edited definition. The milestone target is
    re-derived from times_earned so past steps are not earned again.
    '''
    next_milestone = definition.threshold
    if definition.reset_policy is ResetPolicy.MILESTONE:
        next_milestone = (prev.times_earned + 1) * definition.threshold
    return Achievement(
        definition=definition,
        times_earned=prev.times_earned,
        is_unlocked=prev.is_unlocked,
        unlocked_date=prev.unlocked_date,
        next_milestone=next_milestone,
        last_reset_date=prev.last_reset_date,
    )


def _evaluate_once(prev: Achievement, value: Optional[float], now: datetime) -> Achievement:
    if prev.is_unlocked:
        return prev if prev.progress >= 1.0 else replace(prev, progress=1.0)
    progress = _progress(prev.definition, value, prev.definition.threshold)
    unlocked = progress >= 1.0
    return replace(
        prev,
        current_value=value or 0.0,
        progress=progress,
        is_unlocked=unlocked,
        unlocked_date=now if unlocked else None,
        times_earned=1 if unlocked else 0,
        next_milestone=prev.definition.threshold,
    )


def _evaluate_milestone(prev: Achievement, value: Optional[float], now: datetime) -> Achievement:
    step = prev.definition.threshold
    target = prev.next_milestone or step
    current = value or 0.0
    times = prev.times_earned
    unlocked_date = prev.unlocked_date
    while current >= target:
        times += 1
        unlocked_date = now
        target += step
    return replace(
        prev,
        current_value=current,
        progress=max(0.0, min((current - (target - step)) / step, 1.0)),
        is_unlocked=times > 0,
        unlocked_date=unlocked_date,
        times_earned=times,
        next_milestone=target,
    )


def _evaluate_period(prev: Achievement, value: Optional[float], now: datetime) -> Achievement:
    period_start = _period_start(now, prev.definition.reset_period or Period.MONTH)
    reset_date = prev.last_reset_date
    if reset_date is None or reset_date < period_start:
        reset_date = period_start

    progress = _progress(prev.definition, value, prev.definition.threshold)
    earned_this_period = prev.unlocked_date is not None and prev.unlocked_date >= period_start
    times = prev.times_earned
    unlocked_date = prev.unlocked_date
    if progress >= 1.0 and not earned_this_period:
        times += 1
        unlocked_date = now

    return replace(
        prev,
        current_value=value or 0.0,
        progress=progress,
        is_unlocked=times > 0,
        unlocked_date=unlocked_date,
        times_earned=times,
        next_milestone=prev.definition.threshold,
        last_reset_date=reset_date,
    )


def evaluate_achievements(
    definitions: Iterable[AchievementDefinition],
    aggregates: AchievementAggregates,
    previous: Optional[Iterable[Achievement]] = None,
    now: Optional[datetime] = None,
) -> List[Achievement]:
    """
    Evaluate every definition against the current aggregates.

    `previous` is the caller-owned state from the last evaluation; passing it
    back keeps unlocks sticky and lets repeatable achievements count
    `times_earned` without double counting. Evaluating twice with the same
    inputs is a no-op on the second pass.

    Reset policies:
      - none:      progress = min(value / threshold, 1); unlocked once, never downgraded
      - milestone: each multiple of threshold earns it again; progress measures the next step
      - period:    earned at most once per week/month; the counter restarts each period
    """
    now = now or datetime.now()
    prev_by_id: Dict[str, Achievement] = {a.definition.id: a for a in (previous or [])}

    out: List[Achievement] = []
    for definition in definitions:
        prev = prev_by_id.get(definition.id)
        if prev is None:
            prev = Achievement(definition=definition, next_milestone=definition.threshold)
        elif prev.definition != definition:
            prev = _rebase(prev, definition)
        value = _requirement_value(definition, aggregates)

        if not definition.repeatable or definition.reset_policy is ResetPolicy.NONE:
            out.append(_evaluate_once(prev, value, now))
        elif definition.reset_policy is ResetPolicy.MILESTONE:
            out.append(_evaluate_milestone(prev, value, now))
        else:
            out.append(_evaluate_period(prev, value, now))
    return out
