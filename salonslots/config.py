"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import InvalidDurationError


class CalculatorDefaults(BaseModel):
    """Fallbacks used when a station or calendar setting is missing."""
    slot_increment_minutes: int = 60
    default_duration_minutes: int = 60
    min_slot_granularity_minutes: int = 15
    open_days_ahead: int = 30
    include_today: bool = True

    @field_validator("slot_increment_minutes", "default_duration_minutes", "min_slot_granularity_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure minute settings are positive."""
        if value <= 0:
            raise ValueError(f"Minute settings must be greater than zero, got {value}")
        return value

    @field_validator("open_days_ahead")
    @classmethod
    def validate_days_ahead(cls, value: int) -> int:
        """Calendar window cannot be negative."""
        if value < 0:
            raise ValueError(f"open_days_ahead must not be negative, got {value}")
        return value

    def validate_requested_duration(self, duration_minutes: int) -> int:
        """
        Check a requested booking length against the minimum granularity.

        Args:
            duration_minutes: Requested length in minutes

        Returns:
            The validated duration

        Raises:
            InvalidDurationError: If the duration is shorter than the configured interval
        """
        if duration_minutes <= 0:
            raise InvalidDurationError(
                f"Requested duration must be greater than zero, got {duration_minutes} minutes"
            )
        if duration_minutes < self.min_slot_granularity_minutes:
            raise InvalidDurationError(
                f"Requested duration of {duration_minutes} minutes is shorter than the configured "
                f"interval of {self.min_slot_granularity_minutes} minutes"
            )
        return duration_minutes


class CacheConfig(BaseModel):
    """Snapshot cache sizing."""
    enabled: bool = True
    max_entries: int = 8

    @field_validator("max_entries")
    @classmethod
    def validate_max_entries(cls, value: int) -> int:
        """A bounded cache needs room for at least one entry."""
        if value < 1:
            raise ValueError("cache.max_entries must be at least 1")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Asia/Jerusalem"
    defaults: CalculatorDefaults = Field(default_factory=CalculatorDefaults)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    snapshot_file: Optional[Path] = None
    snapshot_url: Optional[str] = None
    snapshot_api_key: Optional[str] = None
    request_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the business timezone is a known IANA zone."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalise and check the logging level name."""
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def validate_snapshot_source(self) -> "AppConfig":
        """Only one snapshot source may be configured."""
        if self.snapshot_file and self.snapshot_url:
            raise ValueError("Configure either snapshot_file or snapshot_url, not both")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative snapshot paths are resolved against the config file location
        if config.snapshot_file is not None and not config.snapshot_file.is_absolute():
            config.snapshot_file = config_path.parent / config.snapshot_file

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
