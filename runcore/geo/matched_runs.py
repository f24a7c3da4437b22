from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from runcore.geo.heatmap import DEFAULT_CELL_SIZE_DEG, route_cells
from runcore.io.models import RunRecord


@dataclass(frozen=True)
class ImprovementMetric:
    metric: str
    improvement: float
    unit: str
    is_positive: bool


@dataclass(frozen=True)
class MatchedRunComparison:
    base_run: Optional[RunRecord] = None
    comparison_runs: List[RunRecord] = field(default_factory=list)
    route_similarity: float = 0.0      # 0-100
    distance_difference_km: float = 0.0
    time_difference_s: float = 0.0
    pace_difference_s_per_km: float = 0.0
    average_improvement: float = 0.0   # mean candidate pace - base pace; positive = base was faster
    best_matched_run: Optional[RunRecord] = None
    improvements: List[ImprovementMetric] = field(default_factory=list)


def route_similarity(a: RunRecord, b: RunRecord, cell_size_deg: float = DEFAULT_CELL_SIZE_DEG) -> float:
    '''
    Jaccard overlap of the two routes' grid cells, as 0-100.
    0 when either run has no route.
    '''
    cells_a = route_cells(a.route, cell_size_deg)
    cells_b = route_cells(b.route, cell_size_deg)
    if not cells_a or not cells_b:
        return 0.0
    return len(cells_a & cells_b) / len(cells_a | cells_b) * 100.0


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def find_matched_runs(
    base: RunRecord,
    runs: Sequence[RunRecord],
    tolerance: float = 0.10,
    limit: int = 5,
) -> List[RunRecord]:
    '''
    Default candidate selection: other runs within +-tolerance of the base
    distance, most recent first.
    '''
    if base.distance_km <= 0:
        return []
    similar = [
        r for r in runs
        if r.id != base.id and abs(r.distance_km - base.distance_km) / base.distance_km < tolerance
    ]
    similar.sort(key=lambda r: (r.start_time, r.id), reverse=True)
    return similar[:limit]


def compare_runs(
    base: RunRecord,
    candidates: Sequence[RunRecord],
    cell_size_deg: float = DEFAULT_CELL_SIZE_DEG,
) -> MatchedRunComparison:
    """
    Compare a base run against an already-filtered candidate set.
    Differences are base minus the candidates' mean. Candidates without a
    pace (zero distance) are ignored for pace figures.
    """
    if not candidates:
        return MatchedRunComparison(base_run=base)

    paced = [c for c in candidates if c.pace_s_per_km is not None]
    base_pace = base.pace_s_per_km
    avg_pace = _mean([c.pace_s_per_km for c in paced])

    average_improvement = 0.0
    if base_pace is not None and paced:
        average_improvement = avg_pace - base_pace

    improvements: List[ImprovementMetric] = []
    if base_pace is not None and paced:
        improvements.append(ImprovementMetric(
            metric='Pace',
            improvement=average_improvement,
            unit='sec/km',
            is_positive=average_improvement > 0,
        ))

    with_hr = [c.avg_hr for c in candidates if c.avg_hr]
    if base.avg_hr and with_hr:
        # lower HR for the same route is better
        hr_improvement = _mean(with_hr) - base.avg_hr
        improvements.append(ImprovementMetric(
            metric='Heart Rate',
            improvement=hr_improvement,
            unit='bpm',
            is_positive=hr_improvement > 0,
        ))

    best = min(paced, key=lambda c: (c.pace_s_per_km, c.start_time, c.id)) if paced else None

    return MatchedRunComparison(
        base_run=base,
        comparison_runs=list(candidates),
        route_similarity=_mean([route_similarity(base, c, cell_size_deg) for c in candidates]),
        distance_difference_km=base.distance_km - _mean([c.distance_km for c in candidates]),
        time_difference_s=base.duration_s - _mean([c.duration_s for c in candidates]),
        pace_difference_s_per_km=(base_pace - avg_pace) if (base_pace is not None and paced) else 0.0,
        average_improvement=average_improvement,
        best_matched_run=best,
        improvements=improvements,
    )
