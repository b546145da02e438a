"""Configuration settings for the Treadmill Coach backend."""

from pathlib import Path
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


# __file__ = src/treadmill_coach/config.py
PACKAGE_DIR = Path(__file__).parent  # src/treadmill_coach/
PROJECT_ROOT = PACKAGE_DIR.parent.parent  # repository root


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8081", "http://127.0.0.1:3000"]

    # OpenAI Assistants
    openai_api_key: str = ""
    openai_assistant_id: str = ""
    assistant_poll_interval_seconds: float = 5.0
    assistant_max_poll_attempts: int = 120

    # Plan generation: auto | ai | fixture | fallback
    plan_generation_strategy: str = "auto"
    fixture_plan_path: Optional[Path] = None

    # Storage: sqlite | supabase
    database_backend: str = "sqlite"
    database_path: Optional[Path] = None
    supabase_url: str = ""
    supabase_key: str = ""

    def model_post_init(self, __context) -> None:
        """Set default file locations after initialization."""
        if self.database_path is None:
            self.database_path = PROJECT_ROOT / "treadmill_coach.db"
        if self.fixture_plan_path is None:
            self.fixture_plan_path = PACKAGE_DIR / "data" / "debug_plan.json"

    @property
    def ai_configured(self) -> bool:
        """True when both an API key and an assistant id are available."""
        return bool(self.openai_api_key and self.openai_assistant_id)

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
