from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence

from runcore.io.models import RunRecord
from runcore.metrics.compute_metrics import _week_start


class TrendMetric(str, Enum):
    DISTANCE = 'distance'
    PACE = 'pace'
    DURATION = 'duration'
    HEART_RATE = 'heart_rate'
    EFFICIENCY = 'efficiency'
    ELEVATION = 'elevation'


# (unit, lower_is_better)
TREND_METRIC_INFO = {
    TrendMetric.DISTANCE: ('km', False),
    TrendMetric.PACE: ('s/km', True),
    TrendMetric.DURATION: ('min', False),
    TrendMetric.HEART_RATE: ('bpm', True),
    TrendMetric.EFFICIENCY: ('m/beat', False),
    TrendMetric.ELEVATION: ('m', False),
}


class TrendTimeframe(str, Enum):
    WEEK = 'week'
    MONTH = 'month'
    QUARTER = 'quarter'
    YEAR = 'year'
    ALL_TIME = 'all_time'


TIMEFRAME_DAYS = {
    TrendTimeframe.WEEK: 7,
    TrendTimeframe.MONTH: 30,
    TrendTimeframe.QUARTER: 91,
    TrendTimeframe.YEAR: 365,
    TrendTimeframe.ALL_TIME: None,
}


class TrendDirection(str, Enum):
    IMPROVING = 'improving'
    DECLINING = 'declining'
    STABLE = 'stable'


@dataclass(frozen=True)
class TrendDataPoint:
    date: datetime
    value: float
    label: Optional[str] = None


@dataclass(frozen=True)
class RunTrend:
    metric: TrendMetric
    timeframe: TrendTimeframe
    data_points: List[TrendDataPoint] = field(default_factory=list)
    current_value: float = 0.0
    previous_value: Optional[float] = None
    average_value: float = 0.0
    direction: TrendDirection = TrendDirection.STABLE
    percentage_change: float = 0.0


def classify_direction(metric: TrendMetric, percentage_change: float, deadband_pct: float = 3.0) -> TrendDirection:
    _, lower_is_better = TREND_METRIC_INFO[metric]
    signed = -percentage_change if lower_is_better else percentage_change
    if signed > deadband_pct:
        return TrendDirection.IMPROVING
    if signed < -deadband_pct:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def analyze_trend(
    series: Sequence[TrendDataPoint],
    metric: TrendMetric,
    timeframe: TrendTimeframe,
    now: Optional[datetime] = None,
    deadband_pct: float = 3.0,
) -> RunTrend:
    '''
    Compare the latest value in the window ending at `now` (or the last
    point) with the latest value in the window right before it.
    Series must be ascending by date.
    '''
    if not series:
        return RunTrend(metric=metric, timeframe=timeframe)

    end = now or series[-1].date
    days = TIMEFRAME_DAYS[timeframe]

    if days is None:
        window = [p for p in series if p.date <= end]
        previous = window[-2].value if len(window) >= 2 else None
    else:
        length = timedelta(days=days)
        start = end - length
        window = [p for p in series if start < p.date <= end]
        prior = [p for p in series if start - length < p.date <= start]
        previous = prior[-1].value if prior else None

    if not window:
        return RunTrend(metric=metric, timeframe=timeframe, previous_value=previous)

    current = window[-1].value
    average = sum(p.value for p in window) / len(window)
    change = 0.0
    if previous is not None and previous != 0:
        change = (current - previous) / previous * 100.0

    return RunTrend(
        metric=metric,
        timeframe=timeframe,
        data_points=list(window),
        current_value=current,
        previous_value=previous,
        average_value=average,
        direction=classify_direction(metric, change, deadband_pct),
        percentage_change=change,
    )


def _week_value(metric: TrendMetric, runs: List[RunRecord]) -> Optional[float]:
    total_km = sum(r.distance_km for r in runs)
    total_s = sum(r.duration_s for r in runs)
    with_hr = [r for r in runs if r.avg_hr]

    if metric is TrendMetric.DISTANCE:
        return total_km
    if metric is TrendMetric.PACE:
        return total_s / total_km if total_km > 0 else None
    if metric is TrendMetric.DURATION:
        return total_s / 60.0
    if metric is TrendMetric.HEART_RATE:
        return sum(r.avg_hr for r in with_hr) / len(with_hr) if with_hr else None
    if metric is TrendMetric.EFFICIENCY:
        beats = sum(r.avg_hr * r.duration_s / 60.0 for r in with_hr)
        return sum(r.distance_km * 1000.0 for r in with_hr) / beats if beats > 0 else None
    if metric is TrendMetric.ELEVATION:
        return sum(r.elevation_gain_m or 0.0 for r in runs)
    raise ValueError(f'Unknown trend metric: {metric}')


def weekly_series(runs: Sequence[RunRecord], metric: TrendMetric) -> List[TrendDataPoint]:
    '''
    One point per Monday-based week that has runs. Weeks where the metric is
    not applicable (no distance for pace, no HR for heart rate) are skipped.
    '''
    weeks: Dict[datetime, List[RunRecord]] = {}
    for r in runs:
        weeks.setdefault(_week_start(r.start_time), []).append(r)

    points: List[TrendDataPoint] = []
    for ws in sorted(weeks.keys()):
        value = _week_value(metric, weeks[ws])
        if value is None:
            continue
        points.append(TrendDataPoint(date=ws, value=value, label=f'{ws:%b} {ws.day}'))
    return points
