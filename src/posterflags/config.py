"""Configuration management for PosterFlags."""

import os
import re
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from posterflags.models.item import ItemKind


class ProbeConfig(BaseModel):
    """Media probe configuration."""

    command: str = Field(default="ffmpeg", description="Probe executable")
    timeout_seconds: float = Field(default=30, description="Probe timeout")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("Probe timeout must be positive")
        return v


class OverlayConfig(BaseModel):
    """Flag layout configuration."""

    slot_width: int = Field(default=50, description="Horizontal step per flag")
    bottom_offset: int = Field(
        default=50, description="Distance of the flag row from the bottom edge"
    )

    @field_validator("slot_width")
    @classmethod
    def validate_slot_width(cls, v: int) -> int:
        """Validate slot width is positive."""
        if v <= 0:
            raise ValueError("Slot width must be positive")
        return v

    @field_validator("bottom_offset")
    @classmethod
    def validate_bottom_offset(cls, v: int) -> int:
        """Validate bottom offset is not negative."""
        if v < 0:
            raise ValueError("Bottom offset must not be negative")
        return v


class FlagsConfig(BaseModel):
    """Flag resource configuration."""

    extra_dir: Optional[str] = Field(
        default=None, description="Directory with additional <code>.png flags"
    )


class BackupConfig(BaseModel):
    """Backup store configuration."""

    directory: str = Field(
        default="original_posters", description="Backup store directory"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    format: str = Field(default="text", description="Log format (json or text)")
    level: str = Field(default="info", description="Log level")
    output: Optional[str] = Field(default=None, description="Log file path")

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        if v.lower() not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError("Invalid log level")
        return v.lower()


class Config(BaseModel):
    """Main configuration model."""

    enabled: bool = Field(default=True, description="Overlay flags on posters")
    supported_kinds: List[str] = Field(
        default=["movie", "series"], description="Item kinds that get flags"
    )
    probe: ProbeConfig = Field(default_factory=ProbeConfig, description="Probe configuration")
    overlay: OverlayConfig = Field(
        default_factory=OverlayConfig, description="Overlay layout"
    )
    flags: FlagsConfig = Field(default_factory=FlagsConfig, description="Flag resources")
    backup: BackupConfig = Field(default_factory=BackupConfig, description="Backup store")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    @field_validator("supported_kinds")
    @classmethod
    def validate_supported_kinds(cls, v: List[str]) -> List[str]:
        """Validate every entry names a known item kind."""
        known = {kind.value for kind in ItemKind}
        normalized = [kind.lower() for kind in v]
        unknown = [kind for kind in normalized if kind not in known]
        if unknown:
            raise ValueError(f"Unknown item kinds: {', '.join(unknown)}")
        return normalized

    @property
    def kinds(self) -> frozenset[ItemKind]:
        """Supported kinds as enum members."""
        return frozenset(ItemKind(kind) for kind in self.supported_kinds)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        raw_config = cls._substitute_env_vars(raw_config)

        return cls(**raw_config)

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """Recursively replace ${VAR_NAME} with os.environ['VAR_NAME']."""
        if isinstance(obj, dict):
            return {key: Config._substitute_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [Config._substitute_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            pattern = r"\$\{([^}]+)\}"

            def replace_var(match):
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    raise ValueError(
                        f"Environment variable '{var_name}' not found "
                        f"(referenced in configuration)"
                    )
                return value

            return re.sub(pattern, replace_var, obj)
        else:
            return obj

    @classmethod
    def from_defaults(cls) -> "Config":
        """Create configuration with default values."""
        return cls()


def load_config(path: Optional[str | Path] = None) -> Config:
    """Load configuration from file or use defaults.

    Args:
        path: Optional path to configuration file. If None, uses defaults.

    Returns:
        Config instance
    """
    if path is None:
        return Config.from_defaults()

    return Config.from_yaml(path)
