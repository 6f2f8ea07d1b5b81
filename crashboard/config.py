"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WorkDayPolicy


class AvailabilityConfig(BaseModel):
    """Working-day rules for the availability tile."""
    work_start_hour: int = 9
    work_end_hour: int = 17
    lunch_start_hour: int = 13
    lunch_end_hour: int = 14
    buffer_hours: int = 1
    min_free_minutes: int = 120
    max_days_returned: int = 4

    @field_validator("work_start_hour", "work_end_hour", "lunch_start_hour", "lunch_end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 1 and 24."""
        if not 1 <= v <= 24:
            raise ValueError(f"Hour must be between 1 and 24, got {v}")
        return v

    @field_validator("buffer_hours", "min_free_minutes", "max_days_returned")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"Value must be a positive integer, got {value}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "AvailabilityConfig":
        """Ensure lunch sits strictly inside the working day."""
        if not (
            self.work_start_hour
            < self.lunch_start_hour
            < self.lunch_end_hour
            < self.work_end_hour
        ):
            raise ValueError(
                "Hours must satisfy work_start_hour < lunch_start_hour < "
                "lunch_end_hour < work_end_hour"
            )
        return self

    def to_policy(self) -> WorkDayPolicy:
        """Build the domain policy value."""
        return WorkDayPolicy(**self.model_dump())


class GraphConfig(BaseModel):
    """Microsoft Graph connection settings."""
    base_url: str = "https://graph.microsoft.com/v1.0"
    timeout_seconds: float = 30
    page_size: int = 100

    @field_validator("timeout_seconds", "page_size")
    @classmethod
    def validate_positive(cls, value):
        if value <= 0:
            raise ValueError("Value must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/London"
    availability: AvailabilityConfig = Field(default_factory=AvailabilityConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    cache_ttl_seconds: int = 600
    user_key: str = "default"

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_ttl(cls, value: int) -> int:
        if value < 0:
            raise ValueError("cache_ttl_seconds must not be negative")
        return value

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

        return cls(**data)

    @classmethod
    def load_or_default(cls, config_path: Path | None) -> "AppConfig":
        """Load the file if it exists, otherwise fall back to defaults."""
        if config_path is not None and config_path.exists():
            return cls.load_from_yaml(config_path)
        return cls()


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
