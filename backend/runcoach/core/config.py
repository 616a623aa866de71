from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite+pysqlite:///./runcoach.db"
    # Timezone used when naming saved sessions.
    # Examples: "America/Sao_Paulo", "Europe/London", or "local" to use system tz.
    timezone: str = "local"
    log_level: str = "INFO"

    # Elevation lookup (Open-Elevation compatible)
    elevation_url: str = "https://api.open-elevation.com/api/v1/lookup"
    elevation_batch_size: int = 90
    elevation_timeout_seconds: float = 20.0

    # Coaching text service (OpenAI-compatible chat completions)
    coach_api_url: str = "https://api.deepseek.com"
    coach_api_key: str | None = None
    coach_model: str = "deepseek-chat"
    coach_temperature: float = 0.2
    coach_timeout_seconds: float = 30.0

    # Live cue cadence
    cue_poll_seconds: float = 4.0
    cue_interval_seconds: float = 20.0
    cue_distance_m: float = 200.0
    pace_check_seconds: float = 30.0
    pace_tolerance_seconds: float = 6.0

    model_config = SettingsConfigDict(env_file=".env")

    # Allow empty env strings for optional fields
    @field_validator("coach_api_key", mode="before")
    @classmethod
    def _empty_to_none(cls, v):
        if v in ("", None, "null", "None"):
            return None
        return v

    @field_validator("elevation_batch_size")
    @classmethod
    def _positive_batch(cls, v: int) -> int:
        if v < 1:
            raise ValueError("elevation_batch_size must be >= 1")
        return v


settings = Settings()
