"""
Key Issuer - Settings

Reads issuer settings from the environment, after loading an optional
.env file from the current working directory. Variables already set in the
environment take precedence over the file.
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from errors import ConfigurationError

ENV_FILE_NAME = ".env"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def default_env_file() -> Path:
    return Path.cwd() / ENV_FILE_NAME


def load_env_file(path: Optional[Path] = None, environ=None):
    """Load KEY=VALUE lines from a .env file if it exists."""
    env = os.environ if environ is None else environ
    path = default_env_file() if path is None else path
    if path.exists():
        with open(path, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    value = value.strip().strip('"').strip("'")
                    env.setdefault(key.strip(), value)


def parse_bool(name: str, raw: Optional[str]) -> bool:
    value = (raw or "").strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean (true/false), got '{raw}'")


def get_settings(environ: Optional[Mapping[str, str]] = None, env_file: Optional[Path] = None) -> dict:
    """
    Load issuer settings.

    Raises ConfigurationError for malformed values.
    """
    if environ is None:
        load_env_file(env_file)
        environ = os.environ

    level_name = environ.get("KEY_ISSUER_LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level_name), int):
        raise ConfigurationError(f"KEY_ISSUER_LOG_LEVEL '{level_name}' is not a logging level")

    # CI runners export CI=true; issuing a key for the next step is the point there.
    # An explicit KEY_ISSUER_ALLOW_SECRET_OUTPUT always wins over that default.
    in_ci = environ.get("CI", "").strip().lower() in _TRUE
    raw_allow = environ.get("KEY_ISSUER_ALLOW_SECRET_OUTPUT")
    if raw_allow is None or not raw_allow.strip():
        allow_secret_output = in_ci
    else:
        allow_secret_output = parse_bool("KEY_ISSUER_ALLOW_SECRET_OUTPUT", raw_allow)

    return {
        "sink": environ.get("KEY_ISSUER_SINK", "auto"),
        "allow_secret_output": allow_secret_output,
        "mask": parse_bool("KEY_ISSUER_MASK", environ.get("KEY_ISSUER_MASK")),
        "log_level": level_name,
        "in_ci": in_ci,
    }
