from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from runcore.io.models import RoutePoint

Cell = Tuple[int, int]
DEFAULT_CELL_SIZE_DEG = 0.0001


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class HeatmapPoint:
    coordinate: Coordinate
    intensity: float   # 0-1, relative to the busiest cell
    run_count: int     # distinct runs that pass through the cell
    hits: int          # raw point count in the cell


@dataclass(frozen=True)
class MapBounds:
    min_lat: float = 0.0
    max_lat: float = 0.0
    min_lon: float = 0.0
    max_lon: float = 0.0

    @property
    def center(self) -> Coordinate:
        return Coordinate((self.min_lat + self.max_lat) / 2, (self.min_lon + self.max_lon) / 2)


@dataclass(frozen=True)
class RouteHeatmapData:
    points: List[HeatmapPoint] = field(default_factory=list)
    bounds: MapBounds = field(default_factory=MapBounds)
    total_runs: int = 0
    most_frequent_route: Optional[List[RoutePoint]] = None


def cell_for(lat: float, lon: float, cell_size_deg: float) -> Cell:
    return math.floor(lat / cell_size_deg), math.floor(lon / cell_size_deg)


def route_cells(route: Sequence[RoutePoint], cell_size_deg: float = DEFAULT_CELL_SIZE_DEG) -> Set[Cell]:
    return {cell_for(p.latitude, p.longitude, cell_size_deg) for p in route}


def aggregate_routes(
    routes: Sequence[Sequence[RoutePoint]],
    cell_size_deg: float = DEFAULT_CELL_SIZE_DEG,
) -> RouteHeatmapData:
    '''
    Quantize every route point to a fixed grid and count hits per cell across
    all runs. Routes with no points still count toward total_runs.
    '''
    if cell_size_deg <= 0:
        raise ValueError(f'cell_size_deg must be positive, got {cell_size_deg}')

    hits: Dict[Cell, int] = {}
    runs_per_cell: Dict[Cell, int] = {}
    per_route_cells: List[Set[Cell]] = []
    lats: List[float] = []
    lons: List[float] = []

    for route in routes:
        cells_seen: Set[Cell] = set()
        for p in route:
            c = cell_for(p.latitude, p.longitude, cell_size_deg)
            hits[c] = hits.get(c, 0) + 1
            cells_seen.add(c)
            lats.append(p.latitude)
            lons.append(p.longitude)
        for c in cells_seen:
            runs_per_cell[c] = runs_per_cell.get(c, 0) + 1
        per_route_cells.append(cells_seen)

    if not hits:
        return RouteHeatmapData(total_runs=len(routes))

    max_hits = max(hits.values())
    intensity = {c: min(1.0, max(0.0, n / max_hits)) for c, n in hits.items()}

    points = [
        HeatmapPoint(
            coordinate=Coordinate((c[0] + 0.5) * cell_size_deg, (c[1] + 0.5) * cell_size_deg),
            intensity=intensity[c],
            run_count=runs_per_cell[c],
            hits=hits[c],
        )
        for c in sorted(hits.keys())
    ]

    # highest mean cell intensity wins; ties keep the earliest route
    best_idx: Optional[int] = None
    best_mean = -1.0
    for idx, cells in enumerate(per_route_cells):
        if not cells:
            continue
        mean = sum(intensity[c] for c in cells) / len(cells)
        if mean > best_mean:
            best_idx, best_mean = idx, mean

    return RouteHeatmapData(
        points=points,
        bounds=MapBounds(min(lats), max(lats), min(lons), max(lons)),
        total_runs=len(routes),
        most_frequent_route=list(routes[best_idx]) if best_idx is not None else None,
    )
