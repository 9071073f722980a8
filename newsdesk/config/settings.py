"""
NewsDesk Configuration System
=============================

Configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StorageSettings(BaseModel):
    """Document storage configuration."""
    data_dir: str = Field(default="data", description="Directory holding the JSON documents")
    feeds_file: str = Field(default="feeds.json", description="Feed registry document name")
    articles_file: str = Field(default="articles.json", description="Article archive document name")

    @property
    def feeds_path(self) -> Path:
        return Path(self.data_dir) / self.feeds_file

    @property
    def articles_path(self) -> Path:
        return Path(self.data_dir) / self.articles_file


class ProcessingSettings(BaseModel):
    """Ingestion pipeline configuration."""
    max_archive_size: int = Field(default=1000, ge=1, le=100000, description="Retention cap for archived articles")
    parallel_feeds: int = Field(default=5, ge=1, le=50, description="Concurrent feed fetches")
    plain_text_limit: int = Field(default=500, ge=50, le=10000, description="Max length of plain text derived from rich content")


class LimitsSettings(BaseModel):
    """Network limits."""
    request_timeout: int = Field(default=30, ge=1, le=300, description="Per-feed fetch timeout in seconds")
    max_response_bytes: int = Field(default=10 * 1024 * 1024, ge=1024, description="Largest feed document accepted")


class SchedulerSettings(BaseModel):
    """Refresh scheduling configuration."""
    refresh_interval_minutes: int = Field(default=30, ge=1, le=24 * 60, description="Minutes between scheduled refreshes")
    run_on_startup: bool = Field(default=True, description="Refresh once when the scheduler starts")

    @field_validator('refresh_interval_minutes')
    @classmethod
    def validate_interval(cls, v):
        """Ensure the interval is positive."""
        if v <= 0:
            raise ValueError("refresh_interval_minutes must be positive")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/newsdesk.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class NewsDeskSettings(BaseSettings):
    """Main application settings."""

    storage: StorageSettings = Field(default_factory=StorageSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Application metadata
    app_name: str = Field(default="NewsDesk", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "NEWSDESK_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        try:
            Path(self.storage.data_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid data directory: {e}")

        if self.storage.feeds_file == self.storage.articles_file:
            errors.append("feeds_file and articles_file must differ")

        if self.logging.file_path:
            try:
                Path(self.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> NewsDeskSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        # Precedence: environment, .env file, Field defaults
        settings = NewsDeskSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


_settings: Optional[NewsDeskSettings] = None


def get_settings(reload: bool = False) -> NewsDeskSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
