"""Configuration management for GasketCheck."""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any, Literal

import tomli_w

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gasketcheck.analysis.types import AnalyzerConfig, Calibration
from gasketcheck.constants import (
    APP_DIR,
    DEFAULT_CONFIG_FILE,
    DEFAULT_DATABASE_PATH,
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_MAX_BYTES,
)
from gasketcheck.constants import StreamConstants as STC
from gasketcheck.constants import WindowConstants as WC

logger = logging.getLogger(__name__)


class SessionSettings(BaseModel):
    """Settings for running a test session from a stream or trace."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    settle_sec: float = Field(
        default=0.0,
        ge=0,
        lt=WC.MAX_AGE_SEC,
        description=(
            "Extra sample time collected after COMPLETE; with min_release_sec "
            "it must stay inside the sample window"
        ),
    )
    expected_rate_hz: float = Field(
        default=WC.EXPECTED_RATE_HZ, gt=0, description="Nominal pressure sample rate"
    )
    downsample_hz: int = Field(
        default=STC.PRESSURE_DOWNSAMPLE_HZ, gt=0, description="Pressure rate limit"
    )
    motion_threshold: float = Field(
        default=STC.MOTION_DELTA_THRESHOLD,
        gt=0,
        description="Accelerometer delta that closes the motion gate (m/s^2)",
    )


class LoggingSettings(BaseModel):
    """Log file settings from the ``[logging]`` table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=False, description="Write a rotating log file")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="DEBUG", description="Log file level"
    )
    directory: Path | None = Field(
        default=None,
        description="Log directory; 'logs' beside the config file if unset",
    )
    max_size_mb: float = Field(
        default=DEFAULT_LOG_MAX_BYTES / (1024 * 1024),
        gt=0,
        description="Rotation size",
    )
    backup_count: int = Field(
        default=DEFAULT_LOG_BACKUP_COUNT, ge=0, description="Rotated files kept"
    )

    @model_validator(mode="before")
    @classmethod
    def upper_case_level(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("level"), str):
            data = {**data, "level": data["level"].upper()}
        return data


def get_config_path() -> Path:
    """
    Get the path to the configuration file.

    The ``GASKETCHECK_CONFIG`` environment variable overrides the default.

    Returns:
        Path to ~/.gasketcheck/config.toml
    """
    override = os.environ.get("GASKETCHECK_CONFIG")
    if override:
        return Path(override)
    return APP_DIR / DEFAULT_CONFIG_FILE


def load_config() -> dict[str, Any]:
    """
    Load configuration from TOML file.

    Returns:
        Configuration dictionary. Returns empty dict if file doesn't exist
        or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return {}

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Treating config as empty. Fix or delete the file to resolve.")
        return {}


def save_config(config: dict[str, Any]) -> None:
    """
    Save configuration to TOML file using atomic write.

    Creates the parent directory if it doesn't exist.
    Uses temp file + rename for atomic operation.

    Args:
        config: Configuration dictionary to save

    Raises:
        PermissionError: If directory cannot be created or file cannot be written
    """
    config_path = get_config_path()

    config_dir = config_path.parent
    try:
        os.makedirs(config_dir, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create config directory {config_dir}: {e}"
        ) from e

    temp_path = config_path.with_suffix(".toml.tmp")

    try:
        with open(temp_path, "wb") as f:
            tomli_w.dump(config, f)

        os.replace(temp_path, config_path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def _section(name: str) -> dict[str, Any]:
    section = load_config().get(name, {})
    if not isinstance(section, dict):
        raise ValueError(f"Config section [{name}] must be a table")
    return section


def load_analyzer_config() -> AnalyzerConfig:
    """
    Build the detector configuration from the ``[analyzer]`` table.

    Raises:
        pydantic.ValidationError: On unknown keys or invalid values
    """
    return AnalyzerConfig(**_section("analyzer"))


def load_calibration_defaults() -> Calibration:
    """Calibration from the ``[calibration]`` table, used when none is stored."""
    return Calibration(**_section("calibration"))


def load_session_settings() -> SessionSettings:
    """Session settings from the ``[session]`` table."""
    return SessionSettings(**_section("session"))


def load_logging_settings() -> LoggingSettings:
    """Log file settings from the ``[logging]`` table."""
    return LoggingSettings(**_section("logging"))


def get_database_path() -> str:
    """Database path from ``[database].path``, else the default location."""
    path = _section("database").get("path")
    if path:
        return str(Path(path).expanduser())
    return DEFAULT_DATABASE_PATH


def set_config_value(section: str, key: str, value: Any) -> None:
    """Set a single ``[section].key`` value and save the file."""
    config = load_config()
    config.setdefault(section, {})[key] = value
    save_config(config)


def unset_config_value(section: str, key: str) -> bool:
    """
    Remove ``[section].key``; drops the section when it becomes empty.

    Returns:
        True if the key existed
    """
    config = load_config()
    if section not in config or key not in config[section]:
        return False

    del config[section][key]
    if not config[section]:
        del config[section]

    if not config:
        config_path = get_config_path()
        if config_path.exists():
            config_path.unlink()
    else:
        save_config(config)
    return True
