from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from runcore.io.models import RunRecord

STANDARD_DISTANCES_KM: List[Tuple[str, float]] = [
    ('1K', 1.0),
    ('2K', 2.0),
    ('5K', 5.0),
    ('10K', 10.0),
    ('Half Marathon', 21.0975),
    ('Marathon', 42.195),
]
MATCH_TOLERANCE = 0.10
RIEGEL_EXPONENT = 1.06


class MetricType(str, Enum):
    DISTANCE = 'distance'                        # longest single run, km
    SINGLE_RUN_DISTANCE = 'single_run_distance'  # best time at a standard distance, s
    PACE = 'pace'                                # fastest average pace, s/km
    DURATION = 'duration'                        # longest run, s
    DERIVED_ESTIMATE = 'derived_estimate'        # Riegel estimate at a standard distance, s


LOWER_IS_BETTER = {
    MetricType.DISTANCE: False,
    MetricType.SINGLE_RUN_DISTANCE: True,
    MetricType.PACE: True,
    MetricType.DURATION: False,
    MetricType.DERIVED_ESTIMATE: True,
}


@dataclass(frozen=True)
class MetricSample:
    metric: MetricType
    label: str
    value: float
    date: datetime
    run_id: Optional[str] = None


@dataclass(frozen=True)
class PersonalRecord:
    metric: MetricType
    label: str
    value: float
    previous_value: Optional[float]
    date: datetime
    improvement_pct: Optional[float]
    run_id: Optional[str] = None


def is_better(metric: MetricType, candidate: float, best: float) -> bool:
    if LOWER_IS_BETTER[metric]:
        return candidate < best
    return candidate > best


def riegel_time(time_s: float, from_km: float, to_km: float) -> float:
    # T2 = T1 * (D2 / D1) ^ 1.06
    return time_s * (to_km / from_km) ** RIEGEL_EXPONENT


def metric_samples(runs: Iterable[RunRecord]) -> List[MetricSample]:
    '''
    Flatten runs into per-metric samples, keeping the runs' order.
    '''
    samples: List[MetricSample] = []
    for r in runs:
        if r.distance_km <= 0 or r.duration_s <= 0:
            continue
        samples.append(MetricSample(MetricType.DISTANCE, 'Longest Run', r.distance_km, r.start_time, r.id))
        samples.append(MetricSample(MetricType.DURATION, 'Longest Duration', r.duration_s, r.start_time, r.id))
        pace = r.pace_s_per_km
        if pace is not None:
            samples.append(MetricSample(MetricType.PACE, 'Fastest Pace', pace, r.start_time, r.id))

        for label, km in STANDARD_DISTANCES_KM:
            if km * (1 - MATCH_TOLERANCE) <= r.distance_km <= km * (1 + MATCH_TOLERANCE):
                # scale the actual time to the exact distance
                time_s = r.duration_s * km / r.distance_km
                samples.append(MetricSample(MetricType.SINGLE_RUN_DISTANCE, label, time_s, r.start_time, r.id))
            elif r.distance_km > km * (1 + MATCH_TOLERANCE):
                time_s = riegel_time(r.duration_s, r.distance_km, km)
                samples.append(MetricSample(MetricType.DERIVED_ESTIMATE, label, time_s, r.start_time, r.id))
    return samples


def detect_from_samples(samples: Iterable[MetricSample]) -> List[PersonalRecord]:
    '''
    Walk samples in chronological order, keeping a running best per
    (metric, label). Only strict improvements emit a record; ties do not.
    '''
    best: Dict[Tuple[MetricType, str], float] = {}
    records: List[PersonalRecord] = []
    for s in samples:
        key = (s.metric, s.label)
        previous = best.get(key)
        if previous is not None and not is_better(s.metric, s.value, previous):
            continue
        improvement = None
        if previous is not None and previous != 0:
            improvement = (s.value - previous) / previous * 100.0
        best[key] = s.value
        records.append(PersonalRecord(
            metric=s.metric,
            label=s.label,
            value=s.value,
            previous_value=previous,
            date=s.date,
            improvement_pct=improvement,
            run_id=s.run_id,
        ))
    return records


def detect_personal_records(runs: Iterable[RunRecord]) -> List[PersonalRecord]:
    return detect_from_samples(metric_samples(runs))


def best_personal_records(records: Iterable[PersonalRecord]) -> List[PersonalRecord]:
    '''
    Current standing record per (metric, label): the last one emitted.
    '''
    latest: Dict[Tuple[MetricType, str], PersonalRecord] = {}
    for rec in records:
        latest[(rec.metric, rec.label)] = rec
    return list(latest.values())
