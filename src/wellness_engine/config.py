"""Engine configuration loaded from environment variables."""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment."""

    model_config = SettingsConfigDict(env_prefix="WELLNESS_", env_file=".env", extra="ignore")

    # Baselines used when the user profile has none
    default_hrv_baseline: float = 35.0
    default_rhr_baseline: float = 60.0
    default_max_heart_rate: float = 190.0
    default_age: int = 30

    # Sleep
    target_sleep_minutes: float = 480.0

    # Trends
    trend_change_threshold_pct: float = 0.5
    trend_extended_search: int = 30

    # Proxy recovery
    rhr_baseline_days: int = 7


@lru_cache
def get_settings() -> Settings:
    return Settings()
