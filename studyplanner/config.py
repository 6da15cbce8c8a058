"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.block_store import ValidationPolicy
from .domain.models import PlannerPreferences, PreferredWindow

ALLOWED_BLOCK_SIZES = (15, 30, 60)


class PreferencesConfig(BaseModel):
    """Slot search preferences."""
    block_size: int = 60
    preferred_window: PreferredWindow = PreferredWindow.AFTERNOON
    preferred_focus_duration: int = 50

    @field_validator("block_size")
    @classmethod
    def validate_block_size(cls, value: int) -> int:
        """Only the granularities offered in the planner settings are allowed."""
        if value not in ALLOWED_BLOCK_SIZES:
            raise ValueError(f"block_size must be one of {ALLOWED_BLOCK_SIZES}, got {value}")
        return value

    @field_validator("preferred_focus_duration")
    @classmethod
    def validate_focus_duration(cls, value: int) -> int:
        """Ensure focus duration is positive."""
        if value <= 0:
            raise ValueError("preferred_focus_duration must be greater than zero")
        return value

    def to_preferences(self) -> PlannerPreferences:
        """Build the domain preferences object."""
        return PlannerPreferences(
            block_size=self.block_size,
            preferred_window=self.preferred_window,
            preferred_focus_duration=self.preferred_focus_duration,
        )


class PlannerConfig(BaseModel):
    """Application configuration."""
    preferences: PreferencesConfig = Field(default_factory=PreferencesConfig)
    timezone: str = "Europe/Berlin"
    validation: ValidationPolicy = ValidationPolicy.ADVISORY
    snapshot_file: Path = Path("planner.json")
    feed_file: Path | None = None
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "PlannerConfig":
        """
        Load configuration from YAML file.

        Relative ``snapshot_file`` and ``feed_file`` paths are resolved against
        the directory of the config file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            PlannerConfig instance

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
        base_dir = config_path.parent
        if not config.snapshot_file.is_absolute():
            config.snapshot_file = base_dir / config.snapshot_file
        if config.feed_file is not None and not config.feed_file.is_absolute():
            config.feed_file = base_dir / config.feed_file
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
