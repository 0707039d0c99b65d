"""Configuration management for edgek8s.

Settings are resolved with the following precedence:
1. Environment variables (``EDGEK8S_*``)
2. A ``.env`` file in the working directory
3. Configuration files
4. Default values
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

logger = logging.getLogger("edgek8s.config")

DEFAULT_CONFIG_PATHS = [
    Path("~/.config/edgek8s/config.yaml").expanduser(),
    Path("edgek8s.yaml").absolute(),
]

ENV_PREFIX = "EDGEK8S_"


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    file: Optional[str] = Field(
        default=None,
        description="Path to log file (if None, logs to stderr only)"
    )
    max_size_mb: int = Field(
        default=100,
        description="Maximum log file size in MB before rotation"
    )
    backup_count: int = Field(
        default=5,
        description="Number of backup log files to keep"
    )

    @field_validator('level')
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper()


class DownloadSettings(BaseModel):
    """Release artefact download configuration."""
    rke2_release_url: str = Field(
        default="https://github.com/rancher/rke2/releases/download/{version}/{artefact}",
        description="URL template for RKE2 release artefacts"
    )
    timeout: int = Field(
        default=600,
        description="HTTP timeout in seconds for a single download"
    )
    cache_dir: Optional[str] = Field(
        default=None,
        description="Directory used to cache downloaded artefacts between builds"
    )

    @field_validator('cache_dir')
    @classmethod
    def expand_cache_dir(cls, v: Optional[str]) -> Optional[str]:
        """Expand the user home directory in the cache path."""
        return os.path.expanduser(v) if v else v


class Settings(BaseSettings):
    """edgek8s settings.

    Environment variables use the ``EDGEK8S_`` prefix and ``__`` between a
    section and its field, e.g. ``EDGEK8S_DOWNLOAD__TIMEOUT=30``. They take
    precedence over the values read from the settings file.
    """
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    download: DownloadSettings = Field(default_factory=DownloadSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs and rank below the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> 'Settings':
        """Load settings from file and environment variables.

        A settings file that cannot be read or validated is ignored with a
        warning, the environment and defaults still apply.
        """
        config_data: Dict[str, Any] = {}

        if config_path:
            config_path = Path(config_path).expanduser().absolute()
            if config_path.exists():
                config_data = cls._load_config_file(config_path)
        else:
            for path in DEFAULT_CONFIG_PATHS:
                path = path.expanduser().absolute()
                if path.exists():
                    config_data = cls._load_config_file(path)
                    break

        try:
            return cls(**config_data)
        except ValidationError as e:
            if not config_data:
                raise
            logger.warning(f"Ignoring invalid settings file: {e}")
            return cls()

    @classmethod
    def _load_config_file(cls, path: Path) -> Dict[str, Any]:
        """Load settings from a YAML file."""
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load settings from {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {path}: top level is not a mapping")
            return {}

        logger.debug(f"Loaded settings from {path}")
        # An empty section (``download:``) means defaults for that section
        return {k: v for k, v in data.items() if v is not None}


# Global settings instance
_settings: Optional[Settings] = None


def get_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load(config_path)
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Set (or reset, with None) the global settings instance."""
    global _settings
    _settings = settings
