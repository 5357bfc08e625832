"""taskconsole - Per-task console capture for asyncio applications"""

from .capture import CaptureConsole
from .config import (
    CONFIG_FILE,
    DEFAULT_CONFIG,
    TASKCONSOLE_DIR,
    get_ansi_override,
    get_bool_setting,
    get_setting,
    load_config,
)
from .console import console, get_original_console, reset_router
from .context import (
    ContextRegistry,
    ContextVarRegistry,
    RegistryInUseError,
    TaskConsoleError,
    replace_implementation,
)
from .formatting import format_args
from .lines import LastLine
from .native import NativeConsole, Sink
from .router import ConsoleRouter, install_print_hook, uninstall_print_hook

__all__ = [
    # Config
    "CONFIG_FILE",
    "DEFAULT_CONFIG",
    "TASKCONSOLE_DIR",
    "get_ansi_override",
    "get_bool_setting",
    "get_setting",
    "load_config",
    # Consoles
    "CaptureConsole",
    "ConsoleRouter",
    "NativeConsole",
    "Sink",
    "console",
    "get_original_console",
    "reset_router",
    # Context
    "ContextRegistry",
    "ContextVarRegistry",
    "RegistryInUseError",
    "TaskConsoleError",
    "replace_implementation",
    # print() hook
    "install_print_hook",
    "uninstall_print_hook",
    # Formatting
    "LastLine",
    "format_args",
]
