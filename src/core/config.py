"""Settings loaded from environment variables (prefix CHESS_) or a .env file."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHESS_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Record store ---
    database_url: str = Field(
        default=f"sqlite:///{_PROJECT_ROOT / 'data' / 'chess.db'}",
        description="SQLAlchemy URL of the database holding game and history records",
    )
    database_echo: bool = False

    # --- Turn notifications ---
    notify_url: str = Field(
        default="",
        description="Endpoint called to notify the opponent it is their turn. Empty disables HTTP notifications.",
    )
    notify_timeout: float = 5.0

    # --- History ---
    history_limit: int = 50

    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()
