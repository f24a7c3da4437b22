from __future__ import annotations
import os
from datetime import datetime
from typing import IO, List, Optional, Union

from fitparse import FitFile

from runcore.io.models import RoutePoint, RunRecord

SEMICIRCLE_TO_DEG = 180.0 / 2 ** 31


def _to_datetime(value) -> Optional[datetime]:
    if value is None:
        return None
    # fitparse typically yields datetime already for timestamp fields
    if isinstance(value, datetime):
        return value
    return None


def _to_degrees(value) -> Optional[float]:
    if value is None:
        return None
    return float(value) * SEMICIRCLE_TO_DEG


def _route_points(fitfile: FitFile) -> List[RoutePoint]:
    """
    GPS track from 'record' messages. Positions come in semicircles;
    points without a fix are dropped.
    """
    points: List[RoutePoint] = []
    for record in fitfile.get_messages("record"):
        fields = {f.name: f.value for f in record if f.value is not None}
        lat = _to_degrees(fields.get("position_lat"))
        lon = _to_degrees(fields.get("position_long"))
        if lat is None or lon is None:
            continue
        altitude = fields.get("enhanced_altitude", fields.get("altitude"))
        points.append(
            RoutePoint(
                latitude=lat,
                longitude=lon,
                altitude_m=float(altitude) if altitude is not None else None,
                timestamp=_to_datetime(fields.get("timestamp")),
            )
        )
    return points


def _run_id(source: str, start_time: datetime, index: int) -> str:
    return f"fit-{source}-{start_time.strftime('%Y%m%dT%H%M%S')}-{index}"


def parse_garmin_fit(fileish: Union[str, IO[bytes]], source: Optional[str] = None) -> List[RunRecord]:
    """
    Parse a Garmin .fit file (path or binary file object) into RunRecords.
    Uses 'session' messages when available (best source of totals).
    Falls back to 'activity' where necessary.

    Returns:
      List[RunRecord] sorted by start time (usually length 1)
    """
    fitfile = FitFile(fileish)
    if source is None:
        source = os.path.splitext(os.path.basename(fileish))[0] if isinstance(fileish, str) else "upload"

    route = tuple(_route_points(fitfile))
    runs: List[RunRecord] = []

    # Prefer session totals
    sessions = list(fitfile.get_messages("session"))
    for s in sessions:
        fields = {f.name: f.value for f in s if f.value is not None}

        start_time = _to_datetime(fields.get("start_time")) or _to_datetime(fields.get("timestamp"))
        total_distance = fields.get("total_distance")  # meters
        total_timer_time = fields.get("total_timer_time") or fields.get("total_elapsed_time")  # seconds
        avg_hr = fields.get("avg_heart_rate")
        max_hr = fields.get("max_heart_rate")
        ascent = fields.get("total_ascent")

        # Some FITs may contain multiple sports; we only want running
        sport = fields.get("sport")
        if sport is not None and str(sport).lower() not in ("running", "run"):
            continue

        if start_time is None or total_distance is None or total_timer_time is None:
            # Skip incomplete sessions
            continue

        runs.append(
            RunRecord(
                id=_run_id(source, start_time, len(runs)),
                start_time=start_time,
                distance_km=float(total_distance) / 1000.0,
                duration_s=float(total_timer_time),
                avg_hr=float(avg_hr) if avg_hr is not None else None,
                max_hr=float(max_hr) if max_hr is not None else None,
                elevation_gain_m=float(ascent) if ascent is not None else None,
                # one track per file; only attach it when there is a single session
                route=route if len(sessions) == 1 else (),
            )
        )

    if runs:
        runs.sort(key=lambda r: r.start_time)
        return runs

    # Fallback: activity message (less detailed)
    activities = list(fitfile.get_messages("activity"))
    for a in activities:
        fields = {f.name: f.value for f in a if f.value is not None}
        timestamp = _to_datetime(fields.get("timestamp"))
        total_timer_time = fields.get("total_timer_time")
        # activity often doesn't include distance; if absent, caller should use CSV
        total_distance = fields.get("total_distance")

        if timestamp is None or total_timer_time is None or total_distance is None:
            continue

        runs.append(
            RunRecord(
                id=_run_id(source, timestamp, len(runs)),
                start_time=timestamp,
                distance_km=float(total_distance) / 1000.0,
                duration_s=float(total_timer_time),
                route=route,
            )
        )

    runs.sort(key=lambda r: r.start_time)
    return runs
