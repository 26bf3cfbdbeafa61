from __future__ import annotations

import os
from pathlib import Path

import platformdirs

APP_NAME = "powerctl"
CONFIG_FILENAME = "config.toml"


def default_config_path() -> Path:
    # Windows controllers get %APPDATA%, Linux gets $XDG_CONFIG_HOME.
    return platformdirs.user_config_path(APP_NAME, appauthor=False) / CONFIG_FILENAME


def default_data_dir() -> Path:
    return platformdirs.user_data_path(APP_NAME, appauthor=False)


def expand_path(value: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(value)))
