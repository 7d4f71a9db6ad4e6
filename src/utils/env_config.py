"""Environment configuration helpers for the Polo bridge"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values, load_dotenv

from utils.paths import PoloPaths

logger = logging.getLogger(__name__)

# Default values for every POLO_* setting
DEFAULTS = {
    'POLO_HOST': 'localhost',
    'POLO_PORT': '8080',
    'POLO_TOKEN': '',
    'POLO_CONNECT_TIMEOUT': '3.0',
    'POLO_READ_TIMEOUT': '10.0',
    'POLO_POLL_INTERVAL': '1.0',
    'POLO_STATUS_POLICY': 'lenient',
    'POLO_LOG_LEVEL': 'INFO',
}


def find_env_file() -> Optional[Path]:
    """Find the .env file in standard locations"""
    search_paths = [
        Path.cwd() / '.env',
        PoloPaths.get_config_dir() / '.env',
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def load_env_file(env_path: Optional[Path] = None) -> Dict[str, str]:
    """Load a .env file into os.environ with python-dotenv

    Variables already present in the environment are not overwritten.

    Args:
        env_path: Optional path to .env file. If None, auto-discovers.

    Returns:
        Dictionary of variables that were applied
    """
    if env_path is None:
        env_path = find_env_file()

    if env_path is None or not Path(env_path).exists():
        return {}

    try:
        values = dotenv_values(env_path)
        loaded_vars = {
            key: value for key, value in values.items()
            if value is not None and key not in os.environ
        }
        load_dotenv(env_path, override=False)
    except OSError as e:
        logger.warning(f"Could not load .env file {env_path}: {e}")
        return {}

    if loaded_vars:
        logger.debug(f"Loaded {len(loaded_vars)} settings from {env_path}")

    return loaded_vars


def is_set(key: str) -> bool:
    """True if the variable is present in the environment"""
    return key in os.environ


def get_config(key: str, default: Optional[str] = None) -> str:
    """Get configuration value from environment or defaults

    Priority:
    1. Environment variable
    2. Provided default
    3. Built-in default
    """
    if default is None:
        default = DEFAULTS.get(key, '')
    return os.environ.get(key, default)


def get_config_int(key: str, default: int = 0) -> int:
    """Get integer configuration value"""
    try:
        return int(get_config(key, str(default)))
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={os.environ.get(key)!r}")
        return default


def get_config_float(key: str, default: float = 0.0) -> float:
    """Get float configuration value"""
    try:
        return float(get_config(key, str(default)))
    except ValueError:
        logger.warning(f"Ignoring non-numeric {key}={os.environ.get(key)!r}")
        return default
