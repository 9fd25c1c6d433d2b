"""Configuration management for Daybook."""

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Optional

import yaml

from .utils.datetime import get_timezone

logger = logging.getLogger(__name__)


@dataclass
class ConfigModel:
    """Global configuration model for Daybook."""

    # File paths
    data_dir: str = "~/.daybook"

    # Calendar days are taken in this timezone
    timezone: str = "UTC"
    date_format: str = "%Y-%m-%d"

    # Analytics tuning
    snapshot_days: int = 90  # Rolling window kept by the snapshot tier
    consistency_days: int = 30  # Days for full marks on focus consistency
    focus_score_baseline: int = 50  # Reference point for focus score change
    optimal_task_minutes: int = 30  # Peak of the period focus time curve

    # Logging
    log_level: str = "WARNING"

    def __post_init__(self):
        """Post-initialization setup."""
        self.data_dir = os.path.expanduser(self.data_dir)
        if self.snapshot_days < 1:
            logger.warning(f"snapshot_days must be positive, got {self.snapshot_days}; using 90")
            self.snapshot_days = 90
        if self.consistency_days < 1:
            logger.warning(f"consistency_days must be positive, got {self.consistency_days}; using 30")
            self.consistency_days = 30
        if self.optimal_task_minutes < 1:
            logger.warning(f"optimal_task_minutes must be positive, got {self.optimal_task_minutes}; using 30")
            self.optimal_task_minutes = 30

    @property
    def tz(self) -> tzinfo:
        """Resolved display timezone."""
        return get_timezone(self.timezone)

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "data_dir": self.data_dir,
            "timezone": self.timezone,
            "date_format": self.date_format,
            "snapshot_days": self.snapshot_days,
            "consistency_days": self.consistency_days,
            "focus_score_baseline": self.focus_score_baseline,
            "optimal_task_minutes": self.optimal_task_minutes,
            "log_level": self.log_level,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"

    def get_snapshot_path(self) -> Path:
        """Default location of the exported task/time-entry snapshot."""
        return Path(self.data_dir) / "snapshot.json"


class Config:
    """Configuration manager for Daybook."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file or fall back to defaults."""
        if cls._instance is not None:
            return cls._instance

        config = ConfigModel()

        if config_path is None:
            config_path = config.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    yaml_content = f.read()
                config = ConfigModel.from_yaml(yaml_content)
                logger.debug(f"Loaded configuration from {config_path}")
            except (OSError, yaml.YAMLError, TypeError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}. Using default configuration.")
                config = ConfigModel()

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(config_path, 'w') as f:
                f.write(config.to_yaml())
            logger.info(f"Configuration saved to {config_path}")
        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {e}")

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load()


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    Config.save(config, config_path)
