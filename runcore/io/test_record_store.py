from datetime import datetime

from runcore.io.models import RecoveryInput, RunRecord, SegmentEffort, WeatherObservation, WeatherType
from runcore.io.record_store import InMemoryRecordStore

WEATHER = WeatherObservation(temperature_c=14, humidity_pct=55, wind_speed_kmh=8, condition=WeatherType.CLOUDY)


def _run(run_id, day, weather=None):
    return RunRecord(run_id, datetime(2024, 5, day, 7), 5.0, 1500, weather=weather)


def test_runs_are_sorted_and_deduplicated():
    store = InMemoryRecordStore()
    store.add_runs('u1', [_run('c', 3), _run('a', 1)])
    store.add_runs('u1', [_run('b', 2), _run('a', 1)])
    assert [r.id for r in store.list_runs('u1')] == ['a', 'b', 'c']
    assert store.list_runs('someone-else') == []


def test_list_runs_window_and_paging():
    store = InMemoryRecordStore()
    store.add_runs('u1', [_run(f'r{d}', d) for d in range(1, 8)])
    window = store.list_runs('u1', start=datetime(2024, 5, 2), end=datetime(2024, 5, 5, 23))
    assert [r.id for r in window] == ['r2', 'r3', 'r4', 'r5']
    page = store.list_runs('u1', offset=2, limit=2)
    assert [r.id for r in page] == ['r3', 'r4']


def test_lookups():
    store = InMemoryRecordStore()
    store.add_runs('u1', [_run('a', 1, weather=WEATHER)])
    store.set_recovery('u1', RecoveryInput(sleep_quality=70))
    store.add_segment_efforts([SegmentEffort('e1', 'seg', 'u1', datetime(2024, 5, 1), 120)])

    assert store.get_run('u1', 'a').id == 'a'
    assert store.get_run('u1', 'missing') is None
    assert store.weather_for_run('a') == WEATHER
    assert store.latest_recovery('u1').sleep_quality == 70
    assert store.latest_recovery('u2') is None
    assert [e.id for e in store.segment_efforts('seg')] == ['e1']
    assert store.achievement_state('u1') == []


def test_completed_challenges_are_unique_per_window():
    store = InMemoryRecordStore()
    week = datetime(2024, 5, 6)
    store.record_completed_challenges('u1', [('weekly_25k', week), ('four_this_week', week)])
    store.record_completed_challenges('u1', [('weekly_25k', week), ('weekly_25k', datetime(2024, 5, 13))])
    assert store.completed_challenges('u1') == [
        ('four_this_week', week),
        ('weekly_25k', week),
        ('weekly_25k', datetime(2024, 5, 13)),
    ]
    assert store.completed_challenges('u2') == []
