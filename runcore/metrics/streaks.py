from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

AT_RISK_HOURS = 24.0
BROKEN_HOURS = 48.0
WEEKLY_MIN_RUNS = 3


class StreakStatus(str, Enum):
    ACTIVE = 'active'
    AT_RISK = 'at_risk'
    BROKEN = 'broken'
    INACTIVE = 'inactive'


STREAK_STATUS_STYLE = {
    StreakStatus.ACTIVE: ('flame.fill', '10B981'),
    StreakStatus.AT_RISK: ('exclamationmark.triangle.fill', 'F59E0B'),
    StreakStatus.BROKEN: ('flame', 'EF4444'),
    StreakStatus.INACTIVE: ('flame', 'EF4444'),
}


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_run_date: Optional[datetime] = None
    weekly_streak: int = 0
    monthly_streak: int = 0
    freeze_available: bool = False
    freeze_used_date: Optional[datetime] = None
    at_risk_gaps: int = 0


def _hours_between(a: datetime, b: datetime) -> float:
    return (b - a).total_seconds() / 3600.0


def _step(state: StreakState, run_time: datetime) -> StreakState:
    '''
    Fold one run into the state. Runs on a day already counted only move
    last_run_date forward.
    '''
    last = state.last_run_date
    if last is None:
        return replace(state, current_streak=1, longest_streak=max(state.longest_streak, 1), last_run_date=run_time)

    day_gap = (run_time.date() - last.date()).days
    if day_gap <= 0:
        return replace(state, last_run_date=max(last, run_time))

    current = state.current_streak
    freeze_available = state.freeze_available
    freeze_used = state.freeze_used_date
    at_risk = state.at_risk_gaps

    if day_gap == 1:
        current += 1
    elif _hours_between(last, run_time) <= BROKEN_HOURS:
        # a calendar day was skipped but the streak is only at risk
        current += 1
        at_risk += 1
    elif freeze_available:
        current += 1
        freeze_available = False
        freeze_used = run_time
    else:
        current = 1

    return StreakState(
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        last_run_date=run_time,
        weekly_streak=state.weekly_streak,
        monthly_streak=state.monthly_streak,
        freeze_available=freeze_available,
        freeze_used_date=freeze_used,
        at_risk_gaps=at_risk,
    )


def _iso_week(d: date) -> Tuple[int, int]:
    iso = d.isocalendar()
    return iso[0], iso[1]


def _previous_iso_week(week: Tuple[int, int]) -> Tuple[int, int]:
    year, num = week
    monday = date.fromisocalendar(year, num, 1) - timedelta(days=7)
    return _iso_week(monday)


def _weekly_streak(run_days: List[date], run_counts: Dict[Tuple[int, int], int]) -> int:
    if not run_days:
        return 0
    week = _iso_week(run_days[-1])
    # the latest week may still be in progress
    if run_counts.get(week, 0) < WEEKLY_MIN_RUNS:
        week = _previous_iso_week(week)
    streak = 0
    while run_counts.get(week, 0) >= WEEKLY_MIN_RUNS:
        streak += 1
        week = _previous_iso_week(week)
    return streak


def _monthly_streak(run_days: List[date]) -> int:
    if not run_days:
        return 0
    months = {(d.year, d.month) for d in run_days}
    year, month = run_days[-1].year, run_days[-1].month
    streak = 0
    while (year, month) in months:
        streak += 1
        year, month = (year, month - 1) if month > 1 else (year - 1, 12)
    return streak


def _with_calendar_streaks(state: StreakState, run_times: List[datetime]) -> StreakState:
    run_days = [t.date() for t in run_times]
    counts: Dict[Tuple[int, int], int] = {}
    for d in run_days:
        counts[_iso_week(d)] = counts.get(_iso_week(d), 0) + 1
    return replace(state, weekly_streak=_weekly_streak(run_days, counts), monthly_streak=_monthly_streak(run_days))


def evaluate_streak(run_times: Iterable[datetime], freeze_available: bool = False) -> StreakState:
    '''
    Full recompute from history. run_times must be ascending; each entry is
    one run (weekly streaks count runs, not days).
    '''
    times = list(run_times)
    state = StreakState(freeze_available=freeze_available)
    for t in times:
        state = _step(state, t)
    return _with_calendar_streaks(state, times)


def update_streak(state: StreakState, run_time: datetime, history: Iterable[datetime]) -> StreakState:
    '''
    Incremental form: fold the newest run into an existing state. `history`
    is every run time including the new one; it is only needed for the
    weekly/monthly counters, which are not associative over partial updates.
    '''
    return _with_calendar_streaks(_step(state, run_time), list(history))


def streak_status(state: StreakState, now: datetime) -> StreakStatus:
    if state.last_run_date is None:
        return StreakStatus.INACTIVE
    hours = _hours_between(state.last_run_date, now)
    if hours < AT_RISK_HOURS:
        return StreakStatus.ACTIVE
    if hours <= BROKEN_HOURS:
        return StreakStatus.AT_RISK
    return StreakStatus.BROKEN
