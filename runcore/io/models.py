from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class WeatherType(str, Enum):
    SUNNY = 'sunny'
    CLOUDY = 'cloudy'
    PARTLY_CLOUDY = 'partly_cloudy'
    RAINY = 'rainy'
    SNOWY = 'snowy'
    WINDY = 'windy'
    STORMY = 'stormy'
    FOGGY = 'foggy'
    HOT = 'hot'
    COLD = 'cold'


WEATHER_ICONS = {
    WeatherType.SUNNY: 'sun.max.fill',
    WeatherType.CLOUDY: 'cloud.fill',
    WeatherType.PARTLY_CLOUDY: 'cloud.sun.fill',
    WeatherType.RAINY: 'cloud.rain.fill',
    WeatherType.SNOWY: 'snow',
    WeatherType.WINDY: 'wind',
    WeatherType.STORMY: 'cloud.bolt.fill',
    WeatherType.FOGGY: 'cloud.fog.fill',
    WeatherType.HOT: 'thermometer.sun.fill',
    WeatherType.COLD: 'thermometer.snowflake',
}


@dataclass(frozen=True)
class WeatherObservation:
    temperature_c: float
    humidity_pct: float
    wind_speed_kmh: float
    condition: WeatherType
    feels_like_c: Optional[float] = None
    uv_index: Optional[int] = None


@dataclass(frozen=True)
class RoutePoint:
    latitude: float
    longitude: float
    altitude_m: Optional[float] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class RunRecord:
    id: str
    start_time: datetime
    distance_km: float
    duration_s: float
    avg_hr: Optional[float] = None
    max_hr: Optional[float] = None
    elevation_gain_m: Optional[float] = None
    route: Tuple[RoutePoint, ...] = field(default_factory=tuple)
    weather: Optional[WeatherObservation] = None

    @property
    def pace_s_per_km(self) -> Optional[float]:
        # None means "not applicable": no distance to divide by
        if self.distance_km <= 0:
            return None
        return self.duration_s / self.distance_km


@dataclass(frozen=True)
class RecoveryInput:
    '''
    Latest biometric snapshot. Every field is optional; baselines are the
    athlete's rolling norms used to turn HRV / resting HR into deviations.
    '''
    hrv_ms: Optional[float] = None
    resting_hr: Optional[float] = None
    sleep_quality: Optional[float] = None      # 0-100
    fatigue: Optional[float] = None            # self-reported, 0 (fresh) - 10 (exhausted)
    hrv_baseline_ms: Optional[float] = None
    resting_hr_baseline: Optional[float] = None


@dataclass(frozen=True)
class SegmentEffort:
    id: str
    segment_id: str
    athlete_id: str
    date: datetime
    elapsed_time_s: float
    moving_time_s: Optional[float] = None
    avg_hr: Optional[float] = None
