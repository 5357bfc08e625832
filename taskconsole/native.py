"""
Console method surface and the native (passthrough) console.

Every console in taskconsole exposes the same set of methods, defined once on
ConsoleBase:

    log / info / debug          formatted line on the output stream
    warn / warning / error      formatted line on the error stream
    trace                       "Trace: ..." plus the caller's stack, error stream
    print                       Rich renderables (markup, tables, panels...)
    write                       raw text, no formatting
    fresh_line                  redraw a line in place (see lines.py)
    clear                       clear the screen / captured output

Subclasses only decide where text ends up, by implementing _emit(). The
NativeConsole below sends it to the real terminal through Rich; CaptureConsole
(capture.py) records it per task.

NativeConsole is built on two Rich Console objects, one for stdout and one
for stderr. Rich provides the terminal metadata (width, height, color system,
whether escape codes are understood) and the clear-screen control codes.
Text itself is written straight to the underlying file so that what a
CaptureConsole forwards arrives on the terminal byte for byte.
"""

import signal
import threading
import weakref
from collections.abc import Callable
from typing import IO, Any, Protocol, runtime_checkable

from rich.console import Console

from .config import get_ansi_override, watch_resize_enabled
from .formatting import format_args, format_trace
from .lines import LastLine, LineTracker

ResizeListener = Callable[[int, int], None]


@runtime_checkable
class Sink(Protocol):
    """What a CaptureConsole needs from the console it forwards to."""

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    @property
    def color_system(self) -> str | None: ...

    @property
    def supports_ansi(self) -> bool: ...

    def write(self, text: str, *, stderr: bool = False) -> None: ...

    def clear(self) -> None: ...

    def add_resize_listener(self, listener: ResizeListener) -> None: ...


class ConsoleBase:
    """The console method surface, shared by native and capturing consoles."""

    def __init__(self) -> None:
        self._lines = LineTracker()

    # --- Destination -------------------------------------------------------

    def _emit(self, text: str, *, stderr: bool = False) -> None:
        raise NotImplementedError

    @property
    def columns(self) -> int:
        raise NotImplementedError

    @property
    def rows(self) -> int:
        raise NotImplementedError

    @property
    def supports_ansi(self) -> bool:
        raise NotImplementedError

    @property
    def line_state(self) -> dict[str, LastLine]:
        """Snapshot of the fresh_line state, keyed by line id."""
        return self._lines.lines

    # --- Writing -----------------------------------------------------------

    def write(self, text: str, *, stderr: bool = False) -> None:
        """Write raw text. Ends any in-place line redraw in progress."""
        self._lines.interrupt()
        self._emit(text, stderr=stderr)

    def _write_line(self, args: tuple[Any, ...], *, stderr: bool) -> None:
        self.write(format_args(*args) + "\n", stderr=stderr)

    def log(self, *args: Any) -> None:
        self._write_line(args, stderr=False)

    def info(self, *args: Any) -> None:
        self._write_line(args, stderr=False)

    def debug(self, *args: Any) -> None:
        self._write_line(args, stderr=False)

    def warn(self, *args: Any) -> None:
        self._write_line(args, stderr=True)

    def warning(self, *args: Any) -> None:
        self._write_line(args, stderr=True)

    def error(self, *args: Any) -> None:
        self._write_line(args, stderr=True)

    def trace(self, *args: Any) -> None:
        self.write(format_trace(*args) + "\n", stderr=True)

    def fresh_line(self, line_id: str, *args: Any) -> None:
        """Write a line that the next fresh_line() with the same id replaces."""
        rendered = self._lines.render(
            line_id,
            format_args(*args),
            columns=self.columns,
            supports_ansi=self.supports_ansi,
        )
        self._emit(rendered)

    def print(self, *objects: Any, **kwargs: Any) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class NativeConsole(ConsoleBase):
    """The real terminal: the default destination when no task is hooked.

    Args:
        file: Output stream. Defaults to sys.stdout (looked up on every write).
        stderr_file: Error stream. Defaults to sys.stderr.
        width: Fixed width in columns instead of the detected terminal width.
        height: Fixed height in rows instead of the detected terminal height.
        force_terminal: Treat the streams as terminals (True) or not (False)
            instead of detecting it.
        color_system: Rich color system ("auto", "standard", "256",
            "truecolor", "windows" or None).
        supports_ansi: Force escape-code support on or off. Defaults to the
            TASKCONSOLE_ANSI setting read at construction, then to what Rich
            detects.
    """

    def __init__(
        self,
        file: IO[str] | None = None,
        stderr_file: IO[str] | None = None,
        *,
        width: int | None = None,
        height: int | None = None,
        force_terminal: bool | None = None,
        color_system: str | None = "auto",
        supports_ansi: bool | None = None,
    ) -> None:
        super().__init__()
        options: dict[str, Any] = {
            "width": width,
            "height": height,
            "force_terminal": force_terminal,
            "color_system": color_system,
        }
        self._out = Console(file=file, **options)
        self._err = Console(file=stderr_file, stderr=True, **options)
        # TASKCONSOLE_ANSI is only read here
        self._supports_ansi = get_ansi_override() if supports_ansi is None else supports_ansi
        self._listeners: list[weakref.ref[Any] | ResizeListener] = []
        self._watching = False

    # --- Terminal metadata -------------------------------------------------

    @property
    def rich_console(self) -> Console:
        """The Rich console writing to the output stream."""
        return self._out

    @property
    def columns(self) -> int:
        return self._out.width

    @property
    def rows(self) -> int:
        return self._out.height

    @property
    def color_system(self) -> str | None:
        return self._out.color_system

    @property
    def supports_ansi(self) -> bool:
        if self._supports_ansi is not None:
            return self._supports_ansi
        return self._out.is_terminal and not self._out.is_dumb_terminal

    # --- Output ------------------------------------------------------------

    def _emit(self, text: str, *, stderr: bool = False) -> None:
        stream = (self._err if stderr else self._out).file
        stream.write(text)
        stream.flush()

    def print(self, *objects: Any, **kwargs: Any) -> None:
        """Print Rich renderables (markup, tables, panels...) to the output stream."""
        self._lines.interrupt()
        self._out.print(*objects, **kwargs)

    def clear(self) -> None:
        """Clear the screen. Writes nothing when the output is not a terminal."""
        self._lines.interrupt()
        self._out.clear()

    # --- Resize notifications ----------------------------------------------

    def add_resize_listener(self, listener: ResizeListener) -> None:
        """Call `listener(columns, rows)` whenever the terminal size changes.

        Bound methods are held weakly, so registering a console's method does
        not keep that console alive. The entry is dropped as soon as its
        owner is collected. The SIGWINCH watcher is installed on the
        first registration unless TASKCONSOLE_WATCH_RESIZE is off.
        """
        if hasattr(listener, "__self__") and hasattr(listener, "__func__"):
            ref = weakref.WeakMethod(listener, self._forget_listener)  # type: ignore[arg-type]
            self._listeners.append(ref)
        else:
            self._listeners.append(listener)
        if watch_resize_enabled():
            self.watch_resize()

    def _forget_listener(self, ref: weakref.ref[Any]) -> None:
        if ref in self._listeners:
            self._listeners.remove(ref)

    def resize(self, columns: int, rows: int) -> None:
        """Set a fixed terminal size and notify listeners."""
        self._out.size = (columns, rows)
        self._err.size = (columns, rows)
        self.notify_resize()

    def notify_resize(self) -> None:
        """Re-read the terminal size and pass it to every live listener."""
        columns, rows = self.columns, self.rows
        for entry in list(self._listeners):
            listener = entry() if isinstance(entry, weakref.WeakMethod) else entry
            if listener is not None:
                listener(columns, rows)

    def watch_resize(self) -> bool:
        """Install a SIGWINCH handler that calls notify_resize().

        Only possible on POSIX and from the main thread. Any previously
        installed handler keeps being called. Returns True once watching.
        """
        if self._watching:
            return True
        sigwinch = getattr(signal, "SIGWINCH", None)
        if sigwinch is None or threading.current_thread() is not threading.main_thread():
            return False

        previous = signal.getsignal(sigwinch)

        def on_resize(signum: int, frame: Any) -> None:
            self.notify_resize()
            if callable(previous):
                previous(signum, frame)

        signal.signal(sigwinch, on_resize)
        self._watching = True
        return True
