"""
Per-user analytics over a RecordStore.

Every call recomputes from the store's snapshot; nothing is cached between
calls, so results for the same history are identical. Calls for the same
user must be serialized by the caller (achievement state is read, advanced
and written back).
"""
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from loguru import logger

from runcore.achievements.challenges import ChallengeProgress, evaluate_challenges
from runcore.achievements.evaluator import (
    Achievement,
    AchievementAggregates,
    evaluate_achievements,
    newly_earned,
    total_points,
)
from runcore.config.catalog import Catalog, get_catalog
from runcore.config.settings import Settings, get_settings
from runcore.geo.heatmap import RouteHeatmapData, aggregate_routes
from runcore.geo.matched_runs import MatchedRunComparison, compare_runs, find_matched_runs
from runcore.io.models import WeatherObservation
from runcore.io.record_store import RecordStore
from runcore.metrics.compute_metrics import compute_totals
from runcore.metrics.personal_records import PersonalRecord, best_personal_records, detect_personal_records
from runcore.metrics.streaks import StreakState, evaluate_streak
from runcore.metrics.trends import RunTrend, TrendMetric, TrendTimeframe, analyze_trend, weekly_series
from runcore.recovery.readiness import RecoveryAdvice, assess_recovery
from runcore.segments.leaderboard import LeaderboardEntry, rank_efforts
from runcore.weather.conditions import ConditionRating, score_conditions


class AnalyticsService:
    def __init__(
        self,
        store: RecordStore,
        settings: Optional[Settings] = None,
        catalog: Optional[Catalog] = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self._catalog = catalog

    @property
    def catalog(self) -> Catalog:
        if self._catalog is None:
            self._catalog = get_catalog()
        return self._catalog

    def get_streak(self, user_id: str) -> StreakState:
        runs = self.store.list_runs(user_id)
        state = evaluate_streak(
            [r.start_time for r in runs],
            freeze_available=self.settings.streak_freeze_available,
        )
        logger.info(
            f'[STREAK] user_id={user_id} runs={len(runs)} current={state.current_streak} '
            f'longest={state.longest_streak} weekly={state.weekly_streak} monthly={state.monthly_streak}'
        )
        return state

    def get_personal_records(self, user_id: str, current_only: bool = False) -> List[PersonalRecord]:
        runs = self.store.list_runs(user_id)
        records = detect_personal_records(runs)
        logger.info(f'[PR] user_id={user_id} runs={len(runs)} records={len(records)}')
        return best_personal_records(records) if current_only else records

    def get_challenges(self, user_id: str, now: Optional[datetime] = None) -> List[ChallengeProgress]:
        now = now or datetime.now()
        runs = self.store.list_runs(user_id)
        challenges = evaluate_challenges(self.catalog.challenges, runs, now)
        lifetime = self._record_completions(user_id, challenges)
        completed = sum(1 for c in challenges if c.is_completed)
        logger.info(
            f'[CHALLENGES] user_id={user_id} active={len(challenges) - completed} '
            f'completed={completed} lifetime={lifetime}'
        )
        return challenges

    def _record_completions(self, user_id: str, challenges: List[ChallengeProgress]) -> int:
        """Store finished challenges by window and return the lifetime count."""
        self.store.record_completed_challenges(
            user_id,
            [(c.definition.id, c.start) for c in challenges if c.is_completed],
        )
        return len(self.store.completed_challenges(user_id))

    def get_achievements(self, user_id: str, now: Optional[datetime] = None) -> List[Achievement]:
        now = now or datetime.now()
        runs = self.store.list_runs(user_id)
        streak = evaluate_streak(
            [r.start_time for r in runs],
            freeze_available=self.settings.streak_freeze_available,
        )
        challenges = evaluate_challenges(self.catalog.challenges, runs, now)
        aggregates = AchievementAggregates(
            totals=compute_totals(runs, now=now),
            current_streak=streak.current_streak,
            challenges_completed=self._record_completions(user_id, challenges),
        )

        previous = self.store.achievement_state(user_id)
        achievements = evaluate_achievements(self.catalog.achievements, aggregates, previous=previous, now=now)
        self.store.save_achievement_state(user_id, achievements)

        for a in newly_earned(previous, achievements):
            logger.info(
                f'[ACHIEVEMENT] user_id={user_id} earned {a.definition.id!r} '
                f'(tier={a.definition.tier.value}, times={a.times_earned})'
            )
        logger.info(
            f'[ACHIEVEMENT] user_id={user_id} unlocked={sum(1 for a in achievements if a.is_unlocked)}/'
            f'{len(achievements)} points={total_points(achievements)}'
        )
        return achievements

    def get_recovery_advice(self, user_id: str, now: Optional[datetime] = None) -> RecoveryAdvice:
        snapshot = self.store.latest_recovery(user_id)
        if snapshot is None:
            logger.debug(f'[RECOVERY] user_id={user_id} has no biometric snapshot, using neutral readiness')
        advice = assess_recovery(snapshot, now=now)
        logger.info(
            f'[RECOVERY] user_id={user_id} readiness={advice.readiness_score} status={advice.status.value}'
        )
        return advice

    def get_weather_score(self, observation: WeatherObservation) -> ConditionRating:
        return score_conditions(observation)

    def get_trend(
        self,
        user_id: str,
        metric: TrendMetric,
        timeframe: TrendTimeframe,
        now: Optional[datetime] = None,
    ) -> RunTrend:
        runs = self.store.list_runs(user_id)
        trend = analyze_trend(
            weekly_series(runs, metric),
            metric,
            timeframe,
            now=now,
            deadband_pct=self.settings.trend_deadband_pct,
        )
        logger.info(
            f'[TREND] user_id={user_id} metric={metric.value} timeframe={timeframe.value} '
            f'direction={trend.direction.value} change={trend.percentage_change:.1f}%'
        )
        return trend

    def get_route_heatmap(self, user_id: str) -> RouteHeatmapData:
        runs = self.store.list_runs(user_id)
        heatmap = aggregate_routes([r.route for r in runs], cell_size_deg=self.settings.heatmap_cell_size_deg)
        logger.info(f'[HEATMAP] user_id={user_id} runs={heatmap.total_runs} cells={len(heatmap.points)}')
        return heatmap

    def get_segment_leaderboard(self, segment_id: str) -> List[LeaderboardEntry]:
        entries = rank_efforts(self.store.segment_efforts(segment_id))
        logger.info(f'[SEGMENT] segment_id={segment_id} efforts={len(entries)}')
        return entries

    def compare_matched_runs(self, user_id: str, base_run_id: str) -> Optional[MatchedRunComparison]:
        """None when the base run is unknown."""
        base = self.store.get_run(user_id, base_run_id)
        if base is None:
            logger.warning(f'[MATCHED] user_id={user_id} run_id={base_run_id} not found')
            return None
        candidates = find_matched_runs(
            base,
            self.store.list_runs(user_id),
            tolerance=self.settings.matched_run_distance_tolerance,
            limit=self.settings.matched_run_limit,
        )
        comparison = compare_runs(base, candidates, cell_size_deg=self.settings.heatmap_cell_size_deg)
        logger.info(
            f'[MATCHED] user_id={user_id} run_id={base_run_id} candidates={len(candidates)} '
            f'avg_improvement={comparison.average_improvement:.1f}s/km'
        )
        return comparison
