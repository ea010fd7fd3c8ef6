"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML/JSON configuration files with environment variable overrides.
"""

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator

logger = structlog.get_logger(__name__)

ENV_PREFIX = "INSTALLORDER_"
TRUE_VALUES = ("true", "1", "yes")


class ManifestConfig(BaseModel):
    """Manifest location and layout settings.

    Attributes:
        path: Default manifest file used when none is given on the command line
        packages_key: Key holding the list of package entries
        name_key: Key holding a package's name within an entry
        dependencies_key: Key holding a package's dependency list
    """

    path: str | None = Field(
        default=None,
        description="Default manifest file",
    )
    packages_key: str = Field(
        default="packages",
        description="Key of the package list",
        min_length=1,
    )
    name_key: str = Field(
        default="name",
        description="Key of a package's name",
        min_length=1,
    )
    dependencies_key: str = Field(
        default="dependencies",
        description="Key of a package's dependency list",
        min_length=1,
    )

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str | None) -> str | None:
        """Normalize an empty path to None."""
        return v or None

    model_config = {"str_strip_whitespace": True}


class InstallOrderConfig(BaseModel):
    """Top-level configuration.

    Attributes:
        manifest: Manifest settings
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON instead of console output
    """

    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON log lines",
    )

    @field_validator("logging_level", mode="before")
    @classmethod
    def validate_logging_level(cls, v: Any) -> Any:
        """Accept logging levels in any case."""
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "InstallOrderConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            Parsed and validated InstallOrderConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open(encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if not config_data:
            msg = "Configuration file is empty"
            raise ValueError(msg)

        if not isinstance(config_data, dict):
            msg = f"Configuration file must contain a mapping, got {type(config_data).__name__}"
            raise ValueError(msg)

        config = cls(**cls._apply_env_overrides(config_data))

        logger.info(
            "configuration_loaded",
            manifest=config.manifest.path,
            logging_level=config.logging_level,
        )

        return config

    @classmethod
    def from_env(cls) -> "InstallOrderConfig":
        """Build configuration from defaults and environment overrides only."""
        return cls(**cls._apply_env_overrides({}))

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: INSTALLORDER_<SECTION>_<KEY>
        Example: INSTALLORDER_MANIFEST_PATH, INSTALLORDER_LOGGING_LEVEL

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            ("manifest", "path"): f"{ENV_PREFIX}MANIFEST_PATH",
            ("manifest", "packages_key"): f"{ENV_PREFIX}MANIFEST_PACKAGES_KEY",
            ("manifest", "name_key"): f"{ENV_PREFIX}MANIFEST_NAME_KEY",
            ("manifest", "dependencies_key"): f"{ENV_PREFIX}MANIFEST_DEPENDENCIES_KEY",
            ("logging_level",): f"{ENV_PREFIX}LOGGING_LEVEL",
            ("json_logs",): f"{ENV_PREFIX}JSON_LOGS",
        }

        for path, env_var in env_overrides.items():
            value: Any = os.environ.get(env_var)
            if value is None:
                continue

            current = config_data
            for key in path[:-1]:
                current = current.setdefault(key, {})

            if env_var.endswith("_JSON_LOGS"):
                value = value.lower() in TRUE_VALUES

            current[path[-1]] = value
            logger.debug(
                "env_override_applied",
                env_var=env_var,
                config_path=".".join(path),
            )

        return config_data


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: InstallOrderConfig | None = None

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> InstallOrderConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                installorder.yaml, installorder.yml or installorder.json in the
                current directory and falls back to defaults plus environment
                overrides when none exists.

        Returns:
            Loaded InstallOrderConfig instance

        Raises:
            FileNotFoundError: If an explicit config file doesn't exist
            ValueError: If the config file is invalid
        """
        if config_path is None:
            for default_name in ["installorder.yaml", "installorder.yml", "installorder.json"]:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                logger.debug("no_configuration_file_found")
                return InstallOrderConfig.from_env()

        return InstallOrderConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> InstallOrderConfig:
        """Get configuration instance (singleton pattern).

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            InstallOrderConfig instance
        """
        if cls._instance is None or reload:
            cls._instance = cls.load_config(config_path)

        return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> InstallOrderConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> InstallOrderConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ConfigManager",
    "InstallOrderConfig",
    "ManifestConfig",
    "get_config",
    "load_config",
    "reset_config",
]
