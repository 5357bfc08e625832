"""
Shared, routed console singleton.

This module creates the single console object used across an application:

    from taskconsole import console
    console.log("[%s] ready", name)

It is a ConsoleRouter wrapped around the original NativeConsole. Calls made
from a task that has a CaptureConsole hooked in go to that CaptureConsole;
every other call reaches the terminal exactly as if the NativeConsole had been
called directly.

Initialization order matters: the NativeConsole created here is the one every
CaptureConsole forwards to by default, so this module has to be imported
(importing `taskconsole` does it) before any code keeps its own reference to a
console. The router itself is never replaced; reset_router() only restores
its pristine state for test isolation.
"""

from . import context
from .native import NativeConsole
from .router import ConsoleRouter, uninstall_print_hook

# The shared console instance. All routed output in an application flows
# through this object.
console = ConsoleRouter(NativeConsole())


def get_original_console() -> NativeConsole:
    """The console `console` sends calls to when no CaptureConsole is active."""
    original: NativeConsole = console.original  # type: ignore[assignment]
    return original


def reset_router() -> None:
    """Restore the router to its start-up state (for testing).

    Uninstalls the print() hook, drops caller-added attributes from the
    shared console and restores a fresh default context registry.
    """
    uninstall_print_hook()
    console._attributes.clear()
    context.reset_registry()
