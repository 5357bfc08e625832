import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from rich.console import Console

# Load environment variables from .env file
load_dotenv()

# Configuration Defaults
DEFAULT_CONFIG = {
    "TASKCONSOLE_RECORD_OUTPUT": "true",
    "TASKCONSOLE_REAL_CONSOLE_OUTPUT": "false",
    "TASKCONSOLE_ANSI": "auto",
    "TASKCONSOLE_WATCH_RESIZE": "true",
}

# File Paths
TASKCONSOLE_DIR = Path(os.getenv("TASKCONSOLE_DIR", str(Path.home() / ".taskconsole")))
CONFIG_FILE = Path(
    os.getenv("TASKCONSOLE_CONFIG_FILE", str(TASKCONSOLE_DIR / "config.json"))
)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")

# Warnings go straight to stderr. The routed console is not used here because
# configuration is read while consoles are being constructed.
_warnings = Console(stderr=True)

# Parsed config files keyed by path, with the (mtime, size) they were read at
_loaded: dict[Path, tuple[tuple[int, int], dict[str, Any]]] = {}


def load_config() -> dict[str, Any]:
    """Load configuration from file

    The parsed file is reused until it changes on disk, so a broken file is
    reported once instead of on every lookup.
    """
    if not CONFIG_FILE.exists():
        return {}

    stat = CONFIG_FILE.stat()
    stamp = (stat.st_mtime_ns, stat.st_size)
    cached = _loaded.get(CONFIG_FILE)
    if cached is not None and cached[0] == stamp:
        return dict(cached[1])

    config: dict[str, Any] = {}
    try:
        with open(CONFIG_FILE) as f:
            config = json.load(f)
    except Exception as e:
        _warnings.print(f"[yellow]Warning: Could not load config file: {e}[/yellow]")
    _loaded[CONFIG_FILE] = (stamp, config)
    return dict(config)


def get_setting(key: str, default: str) -> str:
    """Get setting with priority: Env Var > Config File > Default"""
    # 1. Environment Variable
    env_val = os.getenv(key)
    if env_val:
        return env_val

    # 2. Config File
    config = load_config()
    if key in config:
        return str(config[key])

    # 3. Default
    return default


def get_bool_setting(key: str, default: bool) -> bool:
    """Get boolean setting with priority: Env Var > Config File > Default"""
    value = get_setting(key, str(default).lower())
    return value.lower() in _TRUE_VALUES


def get_ansi_override() -> bool | None:
    """Return the forced ANSI setting, or None to let the terminal decide.

    TASKCONSOLE_ANSI accepts "auto" (the default) or any of the usual boolean
    spellings. Anything else is reported and treated as "auto".
    """
    value = get_setting("TASKCONSOLE_ANSI", DEFAULT_CONFIG["TASKCONSOLE_ANSI"]).strip().lower()
    if value == "auto":
        return None
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    _warnings.print(
        f"[yellow]Warning: Invalid value for TASKCONSOLE_ANSI: {value}, using auto[/yellow]"
    )
    return None


def default_record_output() -> bool:
    return get_bool_setting("TASKCONSOLE_RECORD_OUTPUT", True)


def default_real_console_output() -> bool:
    return get_bool_setting("TASKCONSOLE_REAL_CONSOLE_OUTPUT", False)


def watch_resize_enabled() -> bool:
    return get_bool_setting("TASKCONSOLE_WATCH_RESIZE", True)
