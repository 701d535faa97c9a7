from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".studynotes" / "data"
    sqlite_filename: str = "studynotes.db"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"
    cors_origins: list[str] = ["*"]

    study_batch_default: int = 10
    study_batch_max: int = 100
    list_page_max: int = 200

    max_interval_days: int = 30
    streak_window_days: int = 30
    review_max_attempts: int = 3  # optimistic-concurrency attempts per review

    xp_correct: int = 2
    xp_incorrect: int = 1

    model_config = {"env_prefix": "STUDYNOTES_"}


settings = Settings()
