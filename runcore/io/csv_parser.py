from __future__ import annotations
import hashlib
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd
from dateutil import parser as dateparser
from loguru import logger

from runcore.io.models import RunRecord


def _norm(col: str) -> str:
    return col.strip().lower().replace(' ', '_').replace('-', '_')

def _parse_datetime(value: str) -> datetime:
    dt = dateparser.parse(str(value))
    if dt is None:
        raise ValueError(f'Could not parse datetime: {value}')
    return dt

def _to_seconds(value) -> float:
    '''
    This accepts either:
        - Seconds numeric
        - h:mm:ss or mm:ss strings
    '''
    if value is None or (isinstance(value, float) and pd.isna(value)):
        raise ValueError("Missing duration")

    if isinstance(value, (int, float)):
        return float(value)

    s = str(value).strip()
    if ':' not in s:
        return float(s)

    parts = [float(p) for p in s.split(':')]
    if len(parts) == 2:
        mm, ss = parts
        return mm * 60 + ss
    if len(parts) == 3:
        hh, mm, ss = parts
        return hh * 3600 + mm * 60 + ss

    raise ValueError(f"Unrecognized time format: {value}")

def _optional_float(row, col: Optional[str]) -> Optional[float]:
    if col is None:
        return None
    val = row[col]
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    try:
        return float(str(val).replace(',', ''))
    except ValueError:
        return None

def _run_id(start_time: datetime, distance_km: float) -> str:
    # stable across re-imports of the same export
    digest = hashlib.sha1(f'{start_time.isoformat()}|{distance_km:.3f}'.encode()).hexdigest()
    return f'csv-{digest[:12]}'


def parse_garmin_csv(filepath: str, distance_unit_default: str = "km") -> List[RunRecord]:
    '''
    Parse a Garmin-exported CSV into RunRecord objects

    distance_unit_default:
        - 'km' (default) or 'm' or 'mi'
        Used only if we can't infer from column naming
    '''
    df = pd.read_csv(filepath)

    # Normalize columns
    col_map = {_norm(c): c for c in df.columns}
    norm_cols = list(col_map.keys())

    candidates: List[Dict[str, str]] = [
        {"start_time": "date", "distance": "distance", "duration": "time", "avg_hr": "avg_hr"},
        {"start_time": "activity_date", "distance": "distance", "duration": "time", "avg_hr": "average_heart_rate"},
        {"start_time": "start_time", "distance": "distance", "duration": "elapsed_time", "avg_hr": "avg_hr"},
        {"start_time": "start_time", "distance": "distance", "duration": "time", "avg_hr": "avg_hr"},
    ]

    chosen: Optional[Dict[str, str]] = None
    for cand in candidates:
        if (
            cand['start_time'] in norm_cols
            and cand['distance'] in norm_cols
            and cand['duration'] in norm_cols
        ):
            chosen = cand
            break

    if chosen is None:
        raise ValueError(
            "Could not map Garmin CSV columns automatically.\n"
            f"Columns found (normalized): {norm_cols}\n"
            "Update candidates in parse_garmin_csv() to match your export."
        )

    start_col = col_map[chosen['start_time']]
    dist_col = col_map[chosen['distance']]
    dur_col = col_map[chosen['duration']]
    avg_hr_col = col_map.get(chosen['avg_hr'])
    max_hr_col = col_map.get('max_hr') or col_map.get('max_heart_rate')
    elev_col = col_map.get('total_ascent') or col_map.get('elevation_gain')

    runs: List[RunRecord] = []
    skipped = 0
    for _, row in df.iterrows():
        start_time = _parse_datetime(row[start_col])

        # Distance unit handling
        dist = float(row[dist_col])
        dist_norm_col = _norm(dist_col)

        if dist_norm_col.endswith("_m") or "meter" in dist_norm_col:
            distance_km = dist / 1000.0
        elif dist_norm_col.endswith("_km") or "kilometer" in dist_norm_col:
            distance_km = dist
        elif dist_norm_col.endswith('_mi') or "mile" in dist_norm_col:
            distance_km = dist * 1.609344
        else:
            if distance_unit_default == 'm':
                distance_km = dist / 1000.0
            elif distance_unit_default == 'mi':
                distance_km = dist * 1.609344
            else:
                distance_km = dist # km default

        duration_s = _to_seconds(row[dur_col])

        if distance_km > 0 and duration_s > 0:
            runs.append(RunRecord(
                id=_run_id(start_time, distance_km),
                start_time=start_time,
                distance_km=distance_km,
                duration_s=duration_s,
                avg_hr=_optional_float(row, avg_hr_col),
                max_hr=_optional_float(row, max_hr_col),
                elevation_gain_m=_optional_float(row, elev_col),
            ))
        else:
            skipped += 1

    if skipped:
        logger.debug(f'[INGEST] Skipped {skipped} CSV rows without distance or duration')

    runs.sort(key = lambda r: r.start_time)
    return runs
