"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Smart Planner Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://planner@localhost:5432/smart_planner"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "smart-planner"

    # Plan enrichment (generative text provider)
    enrichment_enabled: bool = True
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    planner_model: str = "gpt-4o"
    enrichment_temperature: float = 0.7
    enrichment_timeout_seconds: float = 20.0

    # Planner policy defaults
    planner_day_start: str = "06:00"
    planner_day_end: str = "22:00"
    planner_min_slot_minutes: int = 30
    planner_light_day: str = "Saturday"
    planner_revision_label: str = "Revision"
    planner_timezone_label: str = "EAT"
    planner_default_tip: str = "Focus on high-priority subjects first and take regular breaks."
    # 0 turns the per-day cap off
    planner_max_sessions_per_day: int | None = 2
    planner_max_session_minutes: int | None = None

    # Weekly pre-generation worker
    scheduler_enabled: bool = False
    scheduler_timezone: str = "Africa/Addis_Ababa"
    weekly_job_day: int = 6
    weekly_job_hour: int = 18
    weekly_job_minute: int = 0
    jobs_run_on_startup: bool = False


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
