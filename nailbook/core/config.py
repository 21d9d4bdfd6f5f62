from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Nailbook Scheduling API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "nailbook_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Canonical time grid, identical for every nail tech and every day.
    # Override with a JSON list in the environment, e.g. SLOT_TIMES='["09:00","11:00"]'
    SLOT_TIMES: List[str] = [
        "08:00", "10:00", "10:30", "13:00", "15:00", "15:30", "19:00", "20:00", "21:00",
    ]

    # Customer-facing availability window (days ahead of from_date)
    AVAILABILITY_WINDOW_DAYS: int = 90

    # Housekeeping
    STALE_PENDING_MINUTES: int = 120
    AUTO_RELEASE_ENABLED: bool = False
    HOUSEKEEPING_INTERVAL_SECONDS: int = 300

    BOOKING_NUMBER_PREFIX: str = "GN-"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
