"""
ConsoleRouter: the stand-in for the shared console.

Code throughout an application writes to one shared console object. The
router is that object. It has the full console surface, but owns no output of
its own: each call is sent to the CaptureConsole hooked into the calling task,
or to the original console when none is.

    console.log("hello")
      -> context.lookup() -> CaptureConsole?  yes: capture.log("hello")
                                              no:  original.log("hello")

Return values and exceptions come back unchanged, so with nothing hooked the
router behaves exactly like the original console.

The router also behaves like a plain object for attributes it does not route.
Callers may hang their own attributes on it (`console.verbose = True`); those
are kept in a per-router mapping and read back verbatim. Attributes the router
does not know are looked up on the original console. Names that are part of
the routed surface cannot be reassigned, so routing can never be bypassed by
accident and a caller's attribute can never be hidden by a routed name.
"""

import builtins
import sys
from typing import Any

from . import context
from .native import ConsoleBase


class ConsoleRouter:
    """Routes console calls to the active CaptureConsole or the original console.

    Caller attributes behave as on a plain object, except for the routed names
    (log, fresh_line, columns, ...). Those cannot be reassigned: to replace a
    console method, patch it on the original console or on a CaptureConsole.
    """

    def __init__(self, original: ConsoleBase) -> None:
        object.__setattr__(self, "_original", original)
        object.__setattr__(self, "_attributes", {})

    @property
    def original(self) -> ConsoleBase:
        """The console calls go to when no CaptureConsole is active."""
        return self._original

    def _destination(self) -> Any:
        target = context.lookup()
        return self._original if target is None else target

    # --- Routed methods ----------------------------------------------------

    def log(self, *args: Any) -> None:
        return self._destination().log(*args)

    def info(self, *args: Any) -> None:
        return self._destination().info(*args)

    def debug(self, *args: Any) -> None:
        return self._destination().debug(*args)

    def warn(self, *args: Any) -> None:
        return self._destination().warn(*args)

    def warning(self, *args: Any) -> None:
        return self._destination().warning(*args)

    def error(self, *args: Any) -> None:
        return self._destination().error(*args)

    def trace(self, *args: Any) -> None:
        return self._destination().trace(*args)

    def print(self, *objects: Any, **kwargs: Any) -> None:
        return self._destination().print(*objects, **kwargs)

    def write(self, text: str, *, stderr: bool = False) -> None:
        return self._destination().write(text, stderr=stderr)

    def fresh_line(self, line_id: str, *args: Any) -> None:
        return self._destination().fresh_line(line_id, *args)

    def clear(self) -> None:
        return self._destination().clear()

    # --- Routed terminal metadata ------------------------------------------

    @property
    def columns(self) -> int:
        return self._destination().columns

    @property
    def rows(self) -> int:
        return self._destination().rows

    @property
    def color_system(self) -> str | None:
        return self._destination().color_system

    @property
    def supports_ansi(self) -> bool:
        return self._destination().supports_ansi

    # --- Caller attributes -------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        # Only reached for names that are not part of the router itself
        attributes = object.__getattribute__(self, "_attributes")
        if name in attributes:
            return attributes[name]
        return getattr(object.__getattribute__(self, "_original"), name)

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(type(self), name) or name in self.__dict__:
            raise AttributeError(f"cannot assign {name!r}: it is part of the console router")
        self._attributes[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._attributes[name]
        except KeyError:
            raise AttributeError(name) from None

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._attributes))

    def __repr__(self) -> str:
        return f"<ConsoleRouter original={self._original!r}>"


# --- print() hook ------------------------------------------------------------

_builtin_print = builtins.print


def _routed_print(
    *args: Any,
    sep: str | None = " ",
    end: str | None = "\n",
    file: Any = None,
    flush: bool = False,
) -> None:
    target = context.lookup()
    if target is None or (file is not None and file is not sys.stdout):
        _builtin_print(*args, sep=sep, end=end, file=file, flush=flush)
        return
    sep = " " if sep is None else sep
    end = "\n" if end is None else end
    target.write(sep.join(str(arg) for arg in args) + end)


def install_print_hook() -> None:
    """Route the builtin print() to the active CaptureConsole.

    Only prints to stdout are routed. With no CaptureConsole active, or with
    an explicit `file=` other than stdout, the builtin print runs unchanged.
    """
    builtins.print = _routed_print


def uninstall_print_hook() -> None:
    """Restore the builtin print() if install_print_hook() replaced it."""
    if builtins.print is _routed_print:
        builtins.print = _builtin_print


def print_hook_installed() -> bool:
    """Whether install_print_hook() is currently in effect."""
    return builtins.print is _routed_print
