from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from runcore.io.models import RunRecord


def _week_start(d: datetime) -> datetime:
    # Monday = start of the week
    return (d - timedelta(days=d.weekday())).replace(hour = 0, minute = 0, second = 0, microsecond = 0)

def _month_start(d: datetime) -> datetime:
    return d.replace(day = 1, hour = 0, minute = 0, second = 0, microsecond = 0)


@dataclass(frozen=True)
class RunTotals:
    '''
    Raw aggregates over a user's full history, as consumed by the
    achievement evaluator. fastest_pace is None when no run has distance.
    '''
    total_runs: int = 0
    total_distance_km: float = 0.0
    longest_run_km: float = 0.0
    fastest_pace_s_per_km: Optional[float] = None
    month_distance_km: float = 0.0
    week_runs: int = 0


def compute_totals(runs_all: List[RunRecord], now: Optional[datetime] = None) -> RunTotals:
    '''
    Produces the totals consumed by the achievement evaluator.
    "This week" / "this month" are relative to `now`, defaulting to the
    last run so recomputation over the same history stays deterministic.
    '''
    if not runs_all:
        return RunTotals()

    ref = now or runs_all[-1].start_time
    paces = [r.pace_s_per_km for r in runs_all if r.pace_s_per_km is not None]

    week_start = _week_start(ref)
    month_start = _month_start(ref)
    this_week = [r for r in runs_all if week_start <= r.start_time <= ref]
    this_month = [r for r in runs_all if month_start <= r.start_time <= ref]

    return RunTotals(
        total_runs=len(runs_all),
        total_distance_km=round(sum(r.distance_km for r in runs_all), 3),
        longest_run_km=max(r.distance_km for r in runs_all),
        fastest_pace_s_per_km=min(paces) if paces else None,
        month_distance_km=round(sum(r.distance_km for r in this_month), 3),
        week_runs=len(this_week),
    )
