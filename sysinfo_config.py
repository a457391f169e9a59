"""
sysinfo_config.py - Configuration for CPU report detection

Configuration priority:
1. SYSINFO_* environment variables (highest priority)
2. sysinfo.yaml in the current directory
3. Defaults below
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# ============================================================================
# Defaults
# ============================================================================

# Linux source
CPUINFO_PATH = "/proc/cpuinfo"

# macOS source
SYSCTL_PATH = "sysctl"
SYSCTL_TIMEOUT_SECONDS = 5

# Keep a final /proc/cpuinfo record that has no blank line after it
FLUSH_TRAILING_RECORD = False

CONFIG_FILE = "sysinfo.yaml"

# ============================================================================
# Logging
# ============================================================================

LOG_LEVEL = "WARNING"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "on", "yes")


def _to_log_level(value: Any) -> str:
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level {value!r}")
    return level


def _to_timeout(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"invalid timeout {value!r}")
    timeout = float(value)
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {value!r}")
    return timeout


# Same converters for sysinfo.yaml values and environment overrides
_CONVERTERS = {
    "cpuinfo_path": str,
    "sysctl_path": str,
    "sysctl_timeout": _to_timeout,
    "flush_trailing": _to_bool,
    "log_level": _to_log_level,
}

_ENV_OVERRIDES = {
    "SYSINFO_CPUINFO_PATH": "cpuinfo_path",
    "SYSINFO_SYSCTL_PATH": "sysctl_path",
    "SYSINFO_SYSCTL_TIMEOUT": "sysctl_timeout",
    "SYSINFO_FLUSH_TRAILING": "flush_trailing",
    "SYSINFO_LOG_LEVEL": "log_level",
}


def default_config() -> Dict[str, Any]:
    return {
        "cpuinfo_path": CPUINFO_PATH,
        "sysctl_path": SYSCTL_PATH,
        "sysctl_timeout": SYSCTL_TIMEOUT_SECONDS,
        "flush_trailing": FLUSH_TRAILING_RECORD,
        "log_level": LOG_LEVEL,
    }


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from defaults, a YAML file and the environment.

    Args:
        path: YAML file to read (default: sysinfo.yaml in the current directory)

    Returns:
        dict with configuration values
    """
    config = default_config()

    config_path = Path(path or CONFIG_FILE)
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
            file_config = None

        if isinstance(file_config, dict):
            for key, convert in _CONVERTERS.items():
                if key not in file_config:
                    continue
                try:
                    config[key] = convert(file_config[key])
                except (TypeError, ValueError):
                    logger.warning(f"Ignoring invalid {key}={file_config[key]!r} in {config_path}")
            logger.info(f"Loaded configuration from {config_path}")

    for env_name, key in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if not raw:
            continue
        try:
            config[key] = _CONVERTERS[key](raw)
        except ValueError:
            logger.warning(f"Ignoring invalid {env_name}={raw!r}")
            continue
        logger.info(f"Environment override: {env_name}={config[key]}")

    return config


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format=LOG_FORMAT
    )
