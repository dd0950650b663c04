"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///./league.db"
    sql_echo: bool = False  # Set to True to see SQL queries
    db_connect_attempts: int = 5

    # Operator check - when unset every caller may run live matches
    operator_token: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    # Match rules
    # A match can only go live when kickoff is within this many hours of now
    live_window_hours: int = 24
    # Completed matches may be dated at most this far into the future
    completed_future_hours: int = 24
    max_score: int = 50
    max_minute: int = 120

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
