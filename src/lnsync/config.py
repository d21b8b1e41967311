"""Configuration loaded from environment variables and the command line."""
from pathlib import Path
from typing import Literal

from pydantic import computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """lnsync configuration loaded from environment variables.

    Attributes:
        sources_raw: Comma-separated source directories to mirror.
        destination: Directory that receives the symlinks.
        debug: Enable debug-level logging.
        log_file: Append log lines to this file instead of stdout.
        log_format: "console" for plain lines, "json" for JSON lines.
        pid_file: Where to record the running process id.
        shutdown_timeout: Seconds to wait for watch sessions to stop.
    """

    model_config = SettingsConfigDict(
        env_prefix="LNSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    sources_raw: str = ""
    destination: str = ""
    debug: bool = False
    log_file: str | None = None
    log_format: Literal["console", "json"] = "console"
    pid_file: str | None = None
    shutdown_timeout: float = 30.0

    @field_validator("destination")
    @classmethod
    def absolute_destination(cls, value: str) -> str:
        """Make a configured destination absolute."""
        value = value.strip()
        return str(Path(value).absolute()) if value else value

    @computed_field
    @property
    def source_paths(self) -> list[str]:
        """Parse source directories from comma-separated string.

        Returns:
            Absolute source directory paths.
        """
        return [
            str(Path(path.strip()).absolute())
            for path in self.sources_raw.split(",")
            if path.strip()
        ]
