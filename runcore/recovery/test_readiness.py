from datetime import datetime, timedelta

import pytest

from runcore.io.models import RecoveryInput
from runcore.recovery.readiness import (
    FatigueLevel,
    RecoveryStatus,
    TipPriority,
    assess_recovery,
    classify_readiness,
    readiness_score,
)

NOW = datetime(2024, 6, 1, 8, 0)


def test_all_missing_defaults_to_neutral():
    advice = assess_recovery(RecoveryInput(), now=NOW)
    assert advice.readiness_score == 50.0
    assert advice.status is RecoveryStatus.RECOVERING
    assert len(advice.limitations) == 4


def test_missing_snapshot_behaves_like_all_missing():
    assert assess_recovery(None, now=NOW).readiness_score == 50.0


def test_missing_components_renormalize_weights():
    # sleep 80 and fatigue 2 (-> 80) only: weights 0.25 / 0.15 renormalize to the same 80
    score, components, limitations = readiness_score(RecoveryInput(sleep_quality=80, fatigue=2))
    assert set(components) == {'sleep', 'fatigue'}
    assert score == pytest.approx(80.0)
    assert any('HRV' in note for note in limitations)


def test_full_input_weighted_composite():
    snapshot = RecoveryInput(
        hrv_ms=55, hrv_baseline_ms=50,          # +10% -> 100
        resting_hr=58, resting_hr_baseline=58,  # at baseline -> 75
        sleep_quality=90,
        fatigue=1,                              # -> 90
    )
    advice = assess_recovery(snapshot, now=NOW)
    expected = 0.35 * 100 + 0.25 * 75 + 0.25 * 90 + 0.15 * 90
    assert advice.readiness_score == pytest.approx(expected, abs=0.1)
    assert advice.status is RecoveryStatus.FULLY_RECOVERED
    assert advice.fatigue_level is FatigueLevel.NONE
    assert advice.suggested_workout is not None
    assert advice.limitations == []


def test_out_of_range_inputs_are_clamped():
    worst = RecoveryInput(hrv_ms=1, hrv_baseline_ms=80, resting_hr=120, resting_hr_baseline=50,
                          sleep_quality=-40, fatigue=25)
    best = RecoveryInput(hrv_ms=400, hrv_baseline_ms=40, resting_hr=20, resting_hr_baseline=60,
                         sleep_quality=250, fatigue=-10)
    low = assess_recovery(worst, now=NOW)
    high = assess_recovery(best, now=NOW)
    assert low.readiness_score == 0.0
    assert low.status is RecoveryStatus.OVERREACHED
    assert low.suggested_workout is None
    assert high.readiness_score == 100.0
    for advice in (low, high):
        assert 0.0 <= advice.readiness_score <= 100.0


def test_status_thresholds():
    assert classify_readiness(85) is RecoveryStatus.FULLY_RECOVERED
    assert classify_readiness(84.9) is RecoveryStatus.RECOVERED
    assert classify_readiness(70) is RecoveryStatus.RECOVERED
    assert classify_readiness(69.9) is RecoveryStatus.RECOVERING
    assert classify_readiness(50) is RecoveryStatus.RECOVERING
    assert classify_readiness(49.9) is RecoveryStatus.FATIGUED
    assert classify_readiness(30) is RecoveryStatus.FATIGUED
    assert classify_readiness(29.9) is RecoveryStatus.OVERREACHED


def test_lower_score_means_longer_recovery():
    fresh = assess_recovery(RecoveryInput(sleep_quality=95), now=NOW)
    tired = assess_recovery(RecoveryInput(sleep_quality=20), now=NOW)
    assert fresh.estimated_full_recovery < tired.estimated_full_recovery
    assert tired.estimated_full_recovery == NOW + timedelta(hours=80 / 3)


def test_tips_sorted_by_priority():
    tips = assess_recovery(RecoveryInput(), now=NOW).tips
    assert [t.priority for t in tips] == sorted(t.priority for t in tips)
    assert tips[0].priority is TipPriority.HIGH
