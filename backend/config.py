from pydantic_settings import BaseSettings
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"  # development | test | staging | production
    APP_NAME: str = "Study Activity Scheduler"
    DATABASE_URL: str = "sqlite:///data/scheduler.db"
    DATA_DIR: Path = Path("data")
    CORS_ORIGINS: list[str] = [
        "http://localhost:8050",
        "http://localhost:8001",
    ]
    # Calendar used to decide where one study day ends and the next begins.
    STUDY_TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production_like(self) -> bool:
        return (self.ENVIRONMENT or "").strip().lower() in {"production", "prod", "staging"}

    def validate_runtime_configuration(self) -> None:
        errors: list[str] = []
        try:
            ZoneInfo(self.STUDY_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"STUDY_TIMEZONE '{self.STUDY_TIMEZONE}' is not a known timezone")
        if self.is_production_like and ":memory:" in (self.DATABASE_URL or ""):
            errors.append("DATABASE_URL must not be an in-memory database in production-like environments")
        if errors:
            joined = "; ".join(errors)
            raise RuntimeError(f"Invalid scheduler configuration: {joined}")


settings = Settings()
settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
