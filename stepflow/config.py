"""
Configuration settings for StepFlow.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # Application
    APP_NAME: str = "StepFlow"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Workflow Engine
    MAX_STEPS: Optional[int] = 1000  # Per-run handler limit for API runs, None disables

    # Module prefixes API clients may reference handlers from
    HANDLER_MODULES: List[str] = ["stepflow.workflows"]

    # Run records kept in memory, None keeps all
    MAX_STORED_RUNS: Optional[int] = 1000

    # Logging
    LOG_LEVEL: str = "INFO"


# Global settings instance
settings = Settings()
