from dataclasses import replace
from datetime import datetime

import pytest

from runcore.achievements.definitions import (
    AchievementDefinition,
    Category,
    Period,
    RequirementType,
    ResetPolicy,
    Tier,
)
from runcore.achievements.evaluator import (
    AchievementAggregates,
    evaluate_achievements,
    newly_earned,
    progress_percentage,
    total_points,
)
from runcore.metrics.compute_metrics import RunTotals

NOW = datetime(2024, 5, 20, 9)


def _definition(id, requirement, threshold, points=10, **kwargs):
    return AchievementDefinition(
        id=id, name=id, description='', icon='star', category=Category.MILESTONES,
        tier=Tier.BRONZE, requirement=requirement, threshold=threshold, points=points, **kwargs,
    )


TEN_RUNS = _definition('ten_runs', RequirementType.TOTAL_RUNS, 10)
HUNDRED_K = _definition('hundred_k', RequirementType.TOTAL_DISTANCE, 100)
SUB_FIVE = _definition('sub_five', RequirementType.PACE_BELOW_THRESHOLD, 300)
EVERY_100K = _definition('every_100k', RequirementType.TOTAL_DISTANCE, 100, points=5,
                         repeatable=True, reset_policy=ResetPolicy.MILESTONE)
MONTHLY_100K = _definition('monthly_100k', RequirementType.MONTHLY_DISTANCE, 100, points=20,
                           repeatable=True, reset_policy=ResetPolicy.PERIOD, reset_period=Period.MONTH)


def _agg(**totals):
    streak = totals.pop('streak', 0)
    return AchievementAggregates(totals=RunTotals(**totals), current_streak=streak)


def _by_id(achievements):
    return {a.definition.id: a for a in achievements}


def test_progress_bounded_and_unlock_at_one():
    result = evaluate_achievements([TEN_RUNS, HUNDRED_K], _agg(total_runs=4, total_distance_km=140.0), now=NOW)
    runs, distance = result
    assert runs.progress == pytest.approx(0.4)
    assert not runs.is_unlocked
    assert progress_percentage(runs) == pytest.approx(40.0)
    assert distance.progress == 1.0
    assert distance.is_unlocked
    assert distance.unlocked_date == NOW
    for a in result:
        assert 0.0 <= a.progress <= 1.0


def test_unlock_is_sticky():
    first = evaluate_achievements([TEN_RUNS], _agg(total_runs=10), now=NOW)
    later = evaluate_achievements([TEN_RUNS], _agg(total_runs=3), previous=first, now=datetime(2024, 6, 1))
    assert later[0].is_unlocked
    assert later[0].unlocked_date == NOW
    assert later[0].progress == 1.0


def test_pace_threshold_is_lower_is_better():
    slow = evaluate_achievements([SUB_FIVE], _agg(fastest_pace_s_per_km=330.0), now=NOW)[0]
    assert slow.progress == pytest.approx(300 / 330)
    assert not slow.is_unlocked

    fast = evaluate_achievements([SUB_FIVE], _agg(fastest_pace_s_per_km=295.0), now=NOW)[0]
    assert fast.is_unlocked

    none_yet = evaluate_achievements([SUB_FIVE], _agg(), now=NOW)[0]
    assert none_yet.progress == 0.0


def test_milestone_counts_each_multiple():
    first = evaluate_achievements([EVERY_100K], _agg(total_distance_km=250.0), now=NOW)[0]
    assert first.times_earned == 2
    assert first.next_milestone == 300
    assert first.progress == pytest.approx(0.5)

    second = evaluate_achievements([EVERY_100K], _agg(total_distance_km=320.0), previous=[first], now=NOW)[0]
    assert second.times_earned == 3
    assert second.next_milestone == 400
    assert second.progress == pytest.approx(0.2)
    assert total_points([second]) == 15


def test_period_achievement_earned_once_per_month():
    may = evaluate_achievements([MONTHLY_100K], _agg(month_distance_km=120.0), now=NOW)[0]
    assert may.times_earned == 1
    assert may.last_reset_date == datetime(2024, 5, 1)

    may_again = evaluate_achievements([MONTHLY_100K], _agg(month_distance_km=180.0), previous=[may], now=NOW)[0]
    assert may_again.times_earned == 1

    early_june = evaluate_achievements(
        [MONTHLY_100K], _agg(month_distance_km=10.0), previous=[may_again], now=datetime(2024, 6, 3))[0]
    assert early_june.times_earned == 1
    assert early_june.is_unlocked
    assert early_june.progress == pytest.approx(0.1)
    assert early_june.last_reset_date == datetime(2024, 6, 1)

    late_june = evaluate_achievements(
        [MONTHLY_100K], _agg(month_distance_km=105.0), previous=[early_june], now=datetime(2024, 6, 28))[0]
    assert late_june.times_earned == 2
    assert newly_earned([early_june], [late_june]) == [late_june]


def test_evaluation_is_idempotent():
    definitions = [TEN_RUNS, HUNDRED_K, SUB_FIVE, EVERY_100K, MONTHLY_100K]
    agg = _agg(total_runs=12, total_distance_km=230.0, fastest_pace_s_per_km=290.0, month_distance_km=101.0)
    once = evaluate_achievements(definitions, agg, now=NOW)
    twice = evaluate_achievements(definitions, agg, previous=once, now=NOW)
    assert once == twice
    assert newly_earned(once, twice) == []


def test_streak_requirement_uses_current_streak():
    seven_days = _definition('week_warrior', RequirementType.CONSECUTIVE_DAYS, 7)
    result = evaluate_achievements([seven_days], _agg(streak=7), now=NOW)[0]
    assert result.is_unlocked
    assert result.current_value == 7.0


def test_editing_a_milestone_definition_keeps_earned_steps():
    before = evaluate_achievements([EVERY_100K], _agg(total_distance_km=320.0), now=NOW)[0]
    assert before.times_earned == 3

    reworded = replace(EVERY_100K, description='Every hundred kilometres, again')
    after = evaluate_achievements([reworded], _agg(total_distance_km=320.0), previous=[before], now=NOW)[0]
    assert after.times_earned == 3
    assert after.next_milestone == 400
    assert after.progress == pytest.approx(0.2)
    assert after.definition == reworded
    assert newly_earned([before], [after]) == []


def test_editing_a_period_definition_keeps_reset_date():
    may = evaluate_achievements([MONTHLY_100K], _agg(month_distance_km=120.0), now=NOW)[0]
    repointed = replace(MONTHLY_100K, points=40)
    again = evaluate_achievements([repointed], _agg(month_distance_km=120.0), previous=[may], now=NOW)[0]
    assert again.times_earned == 1
    assert again.last_reset_date == datetime(2024, 5, 1)


def test_pace_exactly_at_threshold_does_not_unlock():
    at_threshold = evaluate_achievements([SUB_FIVE], _agg(fastest_pace_s_per_km=300.0), now=NOW)[0]
    assert not at_threshold.is_unlocked
    assert at_threshold.progress < 1.0
