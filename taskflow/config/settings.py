"""
Application settings and configuration
"""

import os
from pathlib import Path
from dotenv import load_dotenv
from typing import Optional
from taskflow.config.constants import (
    TASKFLOW_API_BASE_URL,
    HTTP_TIMEOUT,
    MAX_RETRIES,
    MAX_TAGS_PER_TASK,
    DEADLINE_CHECK_INTERVAL_MS,
    LOCAL_STORE_PATH,
    LOG_DIR,
)

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings loaded from environment variables"""

    # TaskFlow API
    TASKFLOW_API_BASE_URL: str = os.getenv("TASKFLOW_API_BASE_URL", TASKFLOW_API_BASE_URL)
    TASKFLOW_API_TOKEN: Optional[str] = os.getenv("TASKFLOW_API_TOKEN", None)
    TASKFLOW_HTTP_TIMEOUT: float = float(os.getenv("TASKFLOW_HTTP_TIMEOUT", str(HTTP_TIMEOUT)))
    TASKFLOW_HTTP_MAX_RETRIES: int = int(os.getenv("TASKFLOW_HTTP_MAX_RETRIES", str(MAX_RETRIES)))

    # Local store (tags)
    TASKFLOW_STORE_PATH: str = os.getenv("TASKFLOW_STORE_PATH", LOCAL_STORE_PATH)

    # Tasks
    TASKFLOW_MAX_TAGS: int = int(os.getenv("TASKFLOW_MAX_TAGS", str(MAX_TAGS_PER_TASK)))

    # Reminders
    TASKFLOW_CHECK_INTERVAL_MS: int = int(
        os.getenv("TASKFLOW_CHECK_INTERVAL_MS", str(DEADLINE_CHECK_INTERVAL_MS))
    )
    TASKFLOW_REMEMBER_ALERTS: bool = _env_bool("TASKFLOW_REMEMBER_ALERTS", False)

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    TASKFLOW_LOG_DIR: str = os.getenv("TASKFLOW_LOG_DIR", LOG_DIR)

    @classmethod
    def validate(cls) -> bool:
        """Validate that settings are usable"""
        problems = []

        if not cls.TASKFLOW_API_BASE_URL:
            problems.append("TASKFLOW_API_BASE_URL")
        if cls.TASKFLOW_HTTP_MAX_RETRIES < 1:
            problems.append("TASKFLOW_HTTP_MAX_RETRIES")
        if cls.TASKFLOW_MAX_TAGS < 0:
            problems.append("TASKFLOW_MAX_TAGS")
        if cls.TASKFLOW_CHECK_INTERVAL_MS <= 0:
            problems.append("TASKFLOW_CHECK_INTERVAL_MS")

        if problems:
            raise ValueError(
                f"Invalid environment variables: {', '.join(problems)}"
            )

        return True


# Global settings instance
settings = Settings()
