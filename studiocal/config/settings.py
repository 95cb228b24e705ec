"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Optional, cast

import yaml
from pydantic import BaseModel, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "STUDIOCAL_"


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    console_enabled: bool = Field(default=True, description="Enable console logging")
    console_level: str = Field(
        default="INFO",
        description="Console log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    console_colors: bool = Field(
        default=True, description="Enable colored console output (auto-detected)"
    )

    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_level: str = Field(default="DEBUG", description="File log level")
    file_directory: Optional[str] = Field(
        default=None, description="Custom log directory (defaults to data_dir/logs)"
    )
    file_prefix: str = Field(default="studiocal", description="Log file name prefix")
    max_log_files: int = Field(default=5, description="Rotated log files to keep")
    max_file_bytes: int = Field(default=5 * 1024 * 1024, description="Rotate after this size")

    third_party_level: str = Field(
        default="WARNING", description="Log level for third-party libraries"
    )


class StudioCalSettings(BaseSettings):
    """Application settings with environment variable and YAML support."""

    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)

    # Application
    app_name: str = Field(default="StudioCal", description="Application name")

    # Calendar document
    prodid: str = Field(
        default="-//New Age Fotografie//Studio Calendar//EN",
        description="PRODID written to exported calendars",
    )
    calendar_name: Optional[str] = Field(
        default="Photography Sessions", description="X-WR-CALNAME of exported calendars"
    )
    calendar_description: Optional[str] = Field(
        default=None, description="X-WR-CALDESC of exported calendars"
    )
    uid_domain: str = Field(
        default="newagefotografie.com", description="Domain suffix for generated event UIDs"
    )
    default_timezone: str = Field(
        default="UTC", description="Zone for floating iCal times without TZID"
    )

    # Import
    skip_duplicates: bool = Field(
        default=False, description="Skip imported events whose UID already exists"
    )
    max_ics_size_bytes: int = Field(
        default=10 * 1024 * 1024, description="Reject fetched feeds larger than this"
    )
    allow_private_urls: bool = Field(
        default=False, description="Allow importing from private network hosts"
    )

    # Network and retry
    request_timeout: int = Field(default=30, description="HTTP request timeout in seconds")
    max_retries: int = Field(default=3, description="Maximum retry attempts")
    retry_backoff_factor: float = Field(default=1.5, description="Exponential backoff factor")

    # Web server
    web_host: str = Field(default="127.0.0.1", description="Host address for web server")
    web_port: int = Field(default=8080, description="Port for web server")
    feed_filename: str = Field(
        default="photography-sessions.ics", description="Download name of the iCal feed"
    )

    # Paths
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "studiocal")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local" / "share" / "studiocal")
    database_path: Optional[Path] = Field(
        default=None, description="SQLite database file (defaults to data_dir/events.db)"
    )
    config_file_path: Optional[Path] = Field(
        default=None, description="Explicit YAML config file"
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings, description="Logging settings"
    )

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)

        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = {
            key[len(ENV_PREFIX) :].lower() for key in os.environ if key.startswith(ENV_PREFIX)
        }

        self._load_yaml_config()

    def _find_config_file(self) -> Optional[Path]:
        """Locate the YAML configuration file, if any."""
        candidates = []
        if self.config_file_path:
            candidates.append(Path(self.config_file_path))
        candidates.append(self.config_file)
        candidates.append(Path.cwd() / "config" / "config.yaml")

        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None

    def _is_overridden(self, name: str) -> bool:
        """Explicit kwargs and environment variables win over YAML values."""
        return name in self._explicit_args or name in self._env_vars_set

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self._find_config_file()
        if not config_file:
            return

        try:
            with config_file.open(encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            # Don't fail if YAML loading fails, just continue with defaults/env vars
            logging.warning(f"Could not load YAML config from {config_file}: {e}")
            return

        if not isinstance(config_data, dict):
            return

        for name, value in config_data.items():
            if name == "logging" and isinstance(value, dict):
                if not self._is_overridden("logging"):
                    self.logging = LoggingSettings(**{**self.logging.model_dump(), **value})
                continue

            if name not in type(self).model_fields or self._is_overridden(name):
                continue

            field_type = type(self).model_fields[name].annotation
            if value is not None and field_type in (Path, Optional[Path]):
                value = Path(value).expanduser()
            setattr(self, name, value)

        logging.getLogger(__name__).debug(f"Loaded YAML configuration from {config_file}")

    @property
    def config_file(self) -> Path:
        """Path to the default YAML configuration file."""
        return self.config_dir / "config.yaml"

    @property
    def database_file(self) -> Path:
        """Path to SQLite database file."""
        return Path(self.database_path) if self.database_path else self.data_dir / "events.db"

    @property
    def log_directory(self) -> Path:
        """Directory for log files."""
        if self.logging.file_directory:
            return Path(self.logging.file_directory).expanduser()
        return self.data_dir / "logs"


_settings_instance: Optional[StudioCalSettings] = None


def get_settings(**overrides: Any) -> StudioCalSettings:
    """Get the global settings instance, creating it lazily if needed.

    Args:
        **overrides: Values used only when the instance is first created

    Returns:
        StudioCalSettings: The global settings instance
    """
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = StudioCalSettings(**overrides)
    return cast(StudioCalSettings, globals()["_settings_instance"])


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
