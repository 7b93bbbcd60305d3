"""
Runtime settings for labelcheck.

Every setting lives in labelcheck.toml. A few can be overridden per
deployment through environment variables, which may also come from a .env
file next to the process.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

CONFIG_PATH = Path(
    os.environ.get("LABELCHECK_CONFIG_PATH")
    or Path(__file__).resolve().parent.parent / "labelcheck.toml"
)

# (section, key) -> environment variable that wins over the TOML value
ENV_OVERRIDES: dict[tuple[str, ...], str] = {
    ("app", "environment"): "APP_ENV",
    ("app", "log_level"): "LABELCHECK_LOG_LEVEL",
    ("database", "path"): "LABELCHECK_DB_PATH",
    ("logging", "dir"): "LABELCHECK_LOG_DIR",
}


def _load_settings(path: Path) -> dict:
    if not path.exists():
        raise RuntimeError(f"labelcheck settings file not found: {path}")
    with open(path, "rb") as f:
        return tomllib.load(f)


_SETTINGS = _load_settings(CONFIG_PATH)


def get(*keys: str) -> Any:
    """Look up a setting by section and key, e.g. get("sessions", "max_page_size").

    Raises RuntimeError when the setting is absent; there are no silent defaults.
    """
    env_name = ENV_OVERRIDES.get(keys)
    if env_name and os.environ.get(env_name):
        return os.environ[env_name]

    value: Any = _SETTINGS
    for key in keys:
        if not isinstance(value, dict) or key not in value:
            raise RuntimeError(f"{CONFIG_PATH.name} has no setting '{'.'.join(keys)}'")
        value = value[key]
    return value


def environment() -> str:
    return str(get("app", "environment")).strip().lower()


def is_production() -> bool:
    return environment() == "production"
