from __future__ import annotations
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Protocol, Set, Tuple

from runcore.io.models import RecoveryInput, RunRecord, SegmentEffort, WeatherObservation

if TYPE_CHECKING:
    from runcore.achievements.evaluator import Achievement


class RecordStore(Protocol):
    '''
    Read side of the storage collaborator. Runs come back sorted by
    start_time ascending; everything downstream relies on that order.
    '''

    def list_runs(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[RunRecord]: ...

    def get_run(self, user_id: str, run_id: str) -> Optional[RunRecord]: ...

    def latest_recovery(self, user_id: str) -> Optional[RecoveryInput]: ...

    def weather_for_run(self, run_id: str) -> Optional[WeatherObservation]: ...

    def segment_efforts(self, segment_id: str) -> List[SegmentEffort]: ...

    def achievement_state(self, user_id: str) -> List[Achievement]: ...

    def save_achievement_state(self, user_id: str, achievements: List[Achievement]) -> None: ...

    def completed_challenges(self, user_id: str) -> List[Tuple[str, datetime]]: ...

    def record_completed_challenges(self, user_id: str, completions: Iterable[Tuple[str, datetime]]) -> None: ...


class InMemoryRecordStore:
    def __init__(self) -> None:
        self._runs: Dict[str, List[RunRecord]] = {}
        self._recovery: Dict[str, RecoveryInput] = {}
        self._weather: Dict[str, WeatherObservation] = {}
        self._efforts: Dict[str, List[SegmentEffort]] = {}
        self._achievements: Dict[str, List[Achievement]] = {}
        self._completed: Dict[str, Set[Tuple[str, datetime]]] = {}

    # --- writes (ingestion side) ---

    def add_runs(self, user_id: str, runs: List[RunRecord]) -> None:
        bucket = self._runs.setdefault(user_id, [])
        known = {r.id for r in bucket}
        for run in runs:
            if run.id in known:
                continue
            bucket.append(run)
            known.add(run.id)
            if run.weather is not None:
                self._weather[run.id] = run.weather
        bucket.sort(key=lambda r: (r.start_time, r.id))

    def set_recovery(self, user_id: str, snapshot: RecoveryInput) -> None:
        self._recovery[user_id] = snapshot

    def set_weather(self, run_id: str, observation: WeatherObservation) -> None:
        self._weather[run_id] = observation

    def add_segment_efforts(self, efforts: List[SegmentEffort]) -> None:
        for effort in efforts:
            self._efforts.setdefault(effort.segment_id, []).append(effort)

    # --- reads ---

    def list_runs(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[RunRecord]:
        runs = [
            r for r in self._runs.get(user_id, [])
            if (start is None or r.start_time >= start) and (end is None or r.start_time <= end)
        ]
        if limit is None:
            return runs[offset:]
        return runs[offset:offset + limit]

    def get_run(self, user_id: str, run_id: str) -> Optional[RunRecord]:
        for run in self._runs.get(user_id, []):
            if run.id == run_id:
                return run
        return None

    def latest_recovery(self, user_id: str) -> Optional[RecoveryInput]:
        return self._recovery.get(user_id)

    def weather_for_run(self, run_id: str) -> Optional[WeatherObservation]:
        return self._weather.get(run_id)

    def segment_efforts(self, segment_id: str) -> List[SegmentEffort]:
        return list(self._efforts.get(segment_id, []))

    def achievement_state(self, user_id: str) -> List[Achievement]:
        return list(self._achievements.get(user_id, []))

    def save_achievement_state(self, user_id: str, achievements: List[Achievement]) -> None:
        self._achievements[user_id] = list(achievements)

    def completed_challenges(self, user_id: str) -> List[Tuple[str, datetime]]:
        return sorted(self._completed.get(user_id, set()), key=lambda k: (k[1], k[0]))

    def record_completed_challenges(self, user_id: str, completions: Iterable[Tuple[str, datetime]]) -> None:
        # one entry per (challenge id, window start)
        self._completed.setdefault(user_id, set()).update(completions)
