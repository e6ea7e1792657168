"Configuration: defaults, JSON config file and environment overrides."

import json
import logging
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".screenrec"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULTS = {
    "fps": 15,
    "output": "screen.mp4",
    "path": ".",
    "ffmpeg": "ffmpeg",
    "poll_interval": 1.0,
    "settle_delay": 2.0,
}

# Value type of each key, used to coerce strings from the CLI and environment
KEY_TYPES = {
    "fps": int,
    "output": str,
    "path": str,
    "ffmpeg": str,
    "poll_interval": float,
    "settle_delay": float,
}

# Smallest accepted value; poll_interval must be strictly positive
MINIMUMS = {
    "fps": 1,
    "settle_delay": 0.0,
}

ENV_OVERRIDES = {
    "path": "SCREENREC_PATH",
    "ffmpeg": "SCREENREC_FFMPEG",
}


def config_file():
    """Location of the JSON config file, honouring SCREENREC_CONFIG."""
    override = os.environ.get("SCREENREC_CONFIG")
    return Path(override) if override else DEFAULT_CONFIG_FILE


def coerce(key, value):
    """Convert a raw value to the type of `key`. Raises KeyError or ValueError."""
    converted = KEY_TYPES[key](value)
    if key in MINIMUMS and converted < MINIMUMS[key]:
        raise ValueError(f"{key} must be at least {MINIMUMS[key]}")
    if key == "poll_interval" and converted <= 0:
        raise ValueError("poll_interval must be greater than 0")
    return converted


def read_config_file(path=None):
    """Read the config file. A missing or malformed file yields an empty dict."""
    path = path or config_file()
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        return {}
    return data


def write_config_value(key, value, path=None):
    """Persist one key to the config file, keeping the others."""
    path = path or config_file()
    data = read_config_file(path)
    data[key] = coerce(key, value)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return data[key]


def load_config(path=None):
    """Resolve every key: environment > config file > built-in default."""
    # .env from the current directory or its parents
    load_dotenv(find_dotenv(usecwd=True))
    settings = dict(DEFAULTS)
    for key, value in read_config_file(path).items():
        if key not in KEY_TYPES:
            logger.warning(f"Unknown config key ignored: {key}")
            continue
        try:
            settings[key] = coerce(key, value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid value for {key} in config file: {value!r}")

    for key, env_name in ENV_OVERRIDES.items():
        if os.environ.get(env_name):
            settings[key] = coerce(key, os.environ[env_name])

    return settings
