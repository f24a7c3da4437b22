import pytest

from runcore.geo.heatmap import aggregate_routes, cell_for
from runcore.io.models import RoutePoint

CELL = 0.001


def _route(*coords):
    return [RoutePoint(lat, lon) for lat, lon in coords]


# three runs around a park; the loop start is shared by all of them
LOOP = _route((51.5005, -0.1205), (51.5015, -0.1205), (51.5025, -0.1205))
LOOP_AGAIN = _route((51.5006, -0.1204), (51.5016, -0.1204))
DETOUR = _route((51.5007, -0.1203), (51.5105, -0.1305))


def test_empty_input_gives_empty_grid():
    heatmap = aggregate_routes([])
    assert heatmap.points == []
    assert heatmap.most_frequent_route is None
    assert heatmap.total_runs == 0
    assert (heatmap.bounds.min_lat, heatmap.bounds.max_lat, heatmap.bounds.min_lon, heatmap.bounds.max_lon) == (0, 0, 0, 0)


def test_routes_without_points_still_count_as_runs():
    heatmap = aggregate_routes([[], []])
    assert heatmap.points == []
    assert heatmap.total_runs == 2


def test_intensity_normalized_to_busiest_cell():
    heatmap = aggregate_routes([LOOP, LOOP_AGAIN, DETOUR], cell_size_deg=CELL)
    intensities = [p.intensity for p in heatmap.points]
    assert all(0.0 <= i <= 1.0 for i in intensities)
    assert max(intensities) == 1.0

    busiest = max(heatmap.points, key=lambda p: p.hits)
    assert busiest.intensity == 1.0
    assert busiest.hits == 3
    assert busiest.run_count == 3


def test_cells_are_centered_and_sorted():
    heatmap = aggregate_routes([LOOP], cell_size_deg=CELL)
    first = heatmap.points[0]
    cell = cell_for(51.5005, -0.1205, CELL)
    assert first.coordinate.latitude == pytest.approx((cell[0] + 0.5) * CELL)
    assert first.coordinate.longitude == pytest.approx((cell[1] + 0.5) * CELL)
    keys = [(p.coordinate.latitude, p.coordinate.longitude) for p in heatmap.points]
    assert keys == sorted(keys)


def test_bounds_cover_all_raw_points():
    heatmap = aggregate_routes([LOOP, DETOUR], cell_size_deg=CELL)
    assert heatmap.bounds.min_lat == 51.5005
    assert heatmap.bounds.max_lat == 51.5105
    assert heatmap.bounds.min_lon == -0.1305
    assert heatmap.bounds.max_lon == -0.1203
    assert heatmap.bounds.center.latitude == pytest.approx((51.5005 + 51.5105) / 2)


def test_most_frequent_route_has_highest_mean_intensity():
    heatmap = aggregate_routes([DETOUR, LOOP_AGAIN, LOOP], cell_size_deg=CELL)
    assert heatmap.most_frequent_route == LOOP_AGAIN
    assert heatmap.total_runs == 3


def test_rejects_non_positive_cell_size():
    with pytest.raises(ValueError):
        aggregate_routes([LOOP], cell_size_deg=0)
