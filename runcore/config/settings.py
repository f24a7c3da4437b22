from __future__ import annotations
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_PATH = Path(__file__).parent / 'achievements.yml'


class Settings(BaseSettings):
    heatmap_cell_size_deg: float = Field(default=0.0001, gt=0)   # ~11m at the equator
    trend_deadband_pct: float = Field(default=3.0, ge=0)
    matched_run_distance_tolerance: float = Field(default=0.10, gt=0, lt=1)
    matched_run_limit: int = Field(default=5, ge=1)
    streak_freeze_available: bool = False
    catalog_path: Path = DEFAULT_CATALOG_PATH
    log_level: str = 'INFO'
    log_file: str | None = None
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_file='.env',
        env_prefix='RUNCORE_',
        extra='ignore',
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid RUNCORE_LOG_LEVEL '{value}', defaulting to INFO.")
            return 'INFO'
        return upper_value


@lru_cache
def get_settings() -> Settings:
    return Settings()
