# HTTP surface for the run analytics engine
import io
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.encoders import jsonable_encoder
from fitparse.utils import FitParseError
from pydantic import BaseModel, Field

from runcore.achievements.definitions import CATEGORY_ICONS, TIER_COLORS
from runcore.config.settings import get_settings
from runcore.core.logger import setup_logger
from runcore.io.fit_parser import parse_garmin_fit
from runcore.io.models import WEATHER_ICONS, WeatherObservation, WeatherType
from runcore.io.record_store import InMemoryRecordStore
from runcore.metrics.streaks import STREAK_STATUS_STYLE, streak_status
from runcore.metrics.trends import TrendMetric, TrendTimeframe
from runcore.recovery.readiness import RECOVERY_STATUS_STYLE
from runcore.service import AnalyticsService
from runcore.weather.conditions import CONDITION_COLORS

settings = get_settings()
setup_logger(level=settings.log_level, log_file=settings.log_file, json_file=settings.log_json)

# Define FastAPI instance
app = FastAPI(title="Run Analytics Core")

store = InMemoryRecordStore()
service = AnalyticsService(store, settings=settings)


class WeatherIn(BaseModel):
    temperature_c: float
    humidity_pct: float = Field(ge=0, le=100)
    wind_speed_kmh: float = Field(ge=0)
    condition: WeatherType
    feels_like_c: Optional[float] = None
    uv_index: Optional[int] = None

    def to_observation(self) -> WeatherObservation:
        return WeatherObservation(**self.model_dump())


@app.get("/")
def root():
    return {"message": "run analytics core online"}

@app.post("/users/{user_id}/runs/upload")
async def upload_run(user_id: str, file: UploadFile = File(...)):
    """
    Accept a .FIT file upload, parse it into run records (totals + GPS track)
    and add them to the user's history.
    """
    contents = await file.read()
    try:
        runs = parse_garmin_fit(io.BytesIO(contents), source=(file.filename or "upload").rsplit(".", 1)[0])
    except FitParseError as exc:
        raise HTTPException(status_code=400, detail=f"Unreadable FIT file: {exc}")

    if not runs:
        raise HTTPException(status_code=400, detail="No running session found in FIT file")

    store.add_runs(user_id, runs)
    return [
        {
            "run_id": r.id,
            "start_time": r.start_time,
            "distance_km": round(r.distance_km, 3),
            "duration_s": r.duration_s,
            "avg_hr": r.avg_hr,
            "route_points": len(r.route),
        }
        for r in runs
    ]

@app.get("/users/{user_id}/streak")
def get_streak(user_id: str):
    state = service.get_streak(user_id)
    status = streak_status(state, datetime.now())
    icon, color = STREAK_STATUS_STYLE[status]
    return {"streak": state, "status": status, "icon": icon, "color": color}

@app.get("/users/{user_id}/personal-records")
def get_personal_records(user_id: str, current_only: bool = False):
    return service.get_personal_records(user_id, current_only=current_only)

@app.get("/users/{user_id}/achievements")
def get_achievements(user_id: str):
    return [
        {
            **jsonable_encoder(a),
            "tier_color": TIER_COLORS[a.definition.tier],
            "category_icon": CATEGORY_ICONS[a.definition.category],
        }
        for a in service.get_achievements(user_id)
    ]

@app.get("/users/{user_id}/challenges")
def get_challenges(user_id: str):
    return service.get_challenges(user_id)

@app.get("/users/{user_id}/recovery")
def get_recovery_advice(user_id: str):
    advice = service.get_recovery_advice(user_id)
    icon, color = RECOVERY_STATUS_STYLE[advice.status]
    return {**jsonable_encoder(advice), "icon": icon, "color": color}

@app.post("/weather/score")
def get_weather_score(observation: WeatherIn):
    rating = service.get_weather_score(observation.to_observation())
    return {
        **jsonable_encoder(rating),
        "color": CONDITION_COLORS[rating.label],
        "icon": WEATHER_ICONS[observation.condition],
    }

@app.get("/users/{user_id}/trends/{metric}")
def get_trend(user_id: str, metric: TrendMetric, timeframe: TrendTimeframe = TrendTimeframe.MONTH):
    return service.get_trend(user_id, metric, timeframe)

@app.get("/users/{user_id}/heatmap")
def get_route_heatmap(user_id: str):
    return service.get_route_heatmap(user_id)

@app.get("/segments/{segment_id}/leaderboard")
def get_segment_leaderboard(segment_id: str):
    return service.get_segment_leaderboard(segment_id)

@app.get("/users/{user_id}/runs/{run_id}/matched")
def compare_matched_runs(user_id: str, run_id: str):
    comparison = service.compare_matched_runs(user_id, run_id)
    if comparison is None:
        raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
    return comparison
