"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    board_root: Path = Field(
        default=Path(),
        description="Directory holding board files",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    parse_natural_dates: bool | None = Field(
        default=None,
        description="Override the board's parse-natural-dates setting",
    )

    parse_recurrence: bool | None = Field(
        default=None,
        description="Override the board's parse-recurrence setting",
    )

    model_config = {
        "env_prefix": "LANEMARK_",
    }
