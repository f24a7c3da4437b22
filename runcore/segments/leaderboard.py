from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List

from runcore.io.models import SegmentEffort


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    effort_id: str
    segment_id: str
    athlete_id: str
    date: datetime
    elapsed_time_s: float
    is_personal_best: bool
    pr_gap_s: float  # elapsed - athlete's best; positive = slower, 0 for the PB itself


def format_elapsed(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f'{minutes}:{secs:02d}'


def rank_efforts(efforts: Iterable[SegmentEffort]) -> List[LeaderboardEntry]:
    '''
    Fastest first. Equal times rank the earlier effort higher; effort id is
    the last tie-break so output is stable across recomputes.
    '''
    ordered = sorted(efforts, key=lambda e: (e.elapsed_time_s, e.date, e.id))

    # first effort seen per athlete in this order is that athlete's PB
    best: Dict[str, SegmentEffort] = {}
    for e in ordered:
        best.setdefault(e.athlete_id, e)

    entries: List[LeaderboardEntry] = []
    for rank, e in enumerate(ordered, start=1):
        pb = best[e.athlete_id]
        entries.append(LeaderboardEntry(
            rank=rank,
            effort_id=e.id,
            segment_id=e.segment_id,
            athlete_id=e.athlete_id,
            date=e.date,
            elapsed_time_s=e.elapsed_time_s,
            is_personal_best=e.id == pb.id,
            pr_gap_s=e.elapsed_time_s - pb.elapsed_time_s,
        ))
    return entries
