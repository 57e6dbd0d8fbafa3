"""TrackFlow — Central Configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── App ──
    log_level: str = "INFO"

    # ── Periods ──
    history_start_date: str = "2020-01-01"  # Start of the "all" period

    # ── Records ──
    data_source_default: str = "manual"  # manual | import

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "TRACKFLOW_",
    }


settings = Settings()
