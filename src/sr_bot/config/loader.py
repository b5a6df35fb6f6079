"""Configuration loader with TOML support and environment variable overrides."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from .settings import (
    MetricsConfig,
    Settings,
    TelegramConfig,
    TelemetryConfig,
    TranscriptionConfig,
)


SECTIONS = {
    "telegram": TelegramConfig,
    "transcription": TranscriptionConfig,
    "telemetry": TelemetryConfig,
    "metrics": MetricsConfig,
}


class ConfigLoader:
    """Load configuration from TOML files with environment variable overrides."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to TOML configuration file
        """
        self.config_path = config_path or self._get_default_config_path()

    def _get_default_config_path(self) -> Path:
        """Get default configuration file path."""
        config_env = os.getenv("SR_BOT_CONFIG_FILE")
        if config_env:
            return Path(config_env)

        config_locations = [
            Path("config.toml"),
            Path("/etc/sr-bot/config.toml"),
            Path.home() / ".config" / "sr-bot" / "config.toml",
        ]

        for path in config_locations:
            if path.exists():
                return path

        return Path("config.toml")

    def load_toml(self) -> Dict[str, Any]:
        """Load configuration from TOML file."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path, "rb") as f:
            return tomllib.load(f)

    def build_sections(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Turn TOML tables into section settings objects.

        Each section reads its own environment variables, which take
        precedence over the values found in the file.
        """
        merged = dict(config)
        for name, section_cls in SECTIONS.items():
            values = merged.pop(name, None) or {}
            merged[name] = section_cls(**values)
        return merged

    def load(self) -> Settings:
        """Load complete configuration with all overrides applied."""
        toml_config = self.load_toml()
        config = self.build_sections(toml_config)
        return Settings(**config)


def load_config(config_path: Optional[Path] = None) -> Settings:
    """Load configuration from TOML file and environment variables.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Loaded configuration settings
    """
    loader = ConfigLoader(config_path)
    return loader.load()
