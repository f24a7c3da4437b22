from datetime import datetime

import pytest

from runcore.io.csv_parser import parse_garmin_csv


def _write(tmp_path, text):
    path = tmp_path / 'activities.csv'
    path.write_text(text, encoding='utf-8')
    return str(path)


def test_parses_garmin_export(tmp_path):
    path = _write(tmp_path, (
        'Date,Distance,Time,Avg HR,Max HR,Total Ascent\n'
        '2024-05-03 07:00:00,8.0,0:41:40,148,171,40\n'
        '2024-05-01 07:00:00,5.0,25:00,152,,\n'
    ))
    runs = parse_garmin_csv(path)

    assert [r.start_time for r in runs] == [datetime(2024, 5, 1, 7), datetime(2024, 5, 3, 7)]
    first, second = runs
    assert first.duration_s == 1500
    assert first.pace_s_per_km == pytest.approx(300.0)
    assert first.max_hr is None
    assert second.duration_s == 2500
    assert second.avg_hr == 148
    assert second.elevation_gain_m == 40
    assert all(r.id.startswith('csv-') for r in runs)


def test_ids_are_stable_across_imports(tmp_path):
    path = _write(tmp_path, 'Date,Distance,Time\n2024-05-01 07:00,5.0,1500\n')
    assert parse_garmin_csv(path)[0].id == parse_garmin_csv(path)[0].id


def test_skips_rows_without_distance(tmp_path):
    path = _write(tmp_path, 'Date,Distance,Time\n2024-05-01 07:00,0,1500\n2024-05-02 07:00,3.0,900\n')
    runs = parse_garmin_csv(path)
    assert len(runs) == 1
    assert runs[0].distance_km == 3.0


def test_mile_units_are_converted(tmp_path):
    path = _write(tmp_path, 'Date,Distance,Time\n2024-05-01 07:00,1.0,480\n')
    (run,) = parse_garmin_csv(path, distance_unit_default='mi')
    assert run.distance_km == pytest.approx(1.609344)


def test_unmapped_columns_raise(tmp_path):
    path = _write(tmp_path, 'When,How Far\n2024-05-01,5\n')
    with pytest.raises(ValueError):
        parse_garmin_csv(path)
