from typing import List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(".env", override=False)


class Settings(BaseSettings):
    """Settings for the staff rating service, read from the environment or `.env`."""

    # ------------------------------
    # Database
    # ------------------------------
    DATABASE_URL: str = Field(default="sqlite:///./staff_rating.db")

    # ------------------------------
    # HTTP
    # ------------------------------
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://127.0.0.1:5173"]
    )

    # ------------------------------
    # Environment
    # ------------------------------
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # ------------------------------
    # Periodic analysis & mock data
    # ------------------------------
    ANALYSIS_SCHEDULER_ENABLED: bool = Field(default=True)
    ANALYSIS_INTERVAL_SECONDS: int = Field(default=60, ge=1)
    MOCK_DATA_ON_STARTUP: bool = Field(default=False)
    MOCK_DATA_WEEKS: int = Field(default=24, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


settings = Settings()
