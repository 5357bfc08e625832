"""
CaptureConsole: a console that records what one task (or group of tasks) prints.

A CaptureConsole becomes the destination of the shared `console` while it is
hooked into a task. Everything the task logs is appended to `outputs`, and
optionally still shown on the real terminal:

    capture = CaptureConsole(real_console_output=True)

    async def job():
        console.log("step 1")           # recorded by `capture` and shown
        await asyncio.sleep(0)
        console.log("step 2")           # still recorded after the await

    await capture.hook_async_context(job)
    capture.outputs                     # "step 1\\nstep 2\\n"

Tasks running concurrently with `job` keep printing wherever they printed
before. One CaptureConsole may be hooked into several tasks at once; their
writes land in the same buffer in the order they were made.
"""

import io
from collections.abc import Callable
from typing import Any

from rich.console import Console

from . import context
from .config import default_real_console_output, default_record_output
from .console import get_original_console
from .native import ConsoleBase, Sink

ErrorHandler = Callable[[BaseException], None]


class CaptureConsole(ConsoleBase):
    """Records console output for the tasks it is hooked into.

    Args:
        real_console_output: Also forward every write to `base_console`.
            Defaults to the TASKCONSOLE_REAL_CONSOLE_OUTPUT setting (off).
        record_output: Append every write to `outputs`. Defaults to the
            TASKCONSOLE_RECORD_OUTPUT setting (on).
        base_console: Where forwarded writes go and where terminal metadata
            comes from. Defaults to the original, unrouted console.
        error_handler: Called instead of logging when error() receives a
            single exception.
        supports_ansi: Whether fresh_line() may emit erase sequences.
            Defaults to what `base_console` supports.
    """

    def __init__(
        self,
        real_console_output: bool | None = None,
        record_output: bool | None = None,
        base_console: Sink | None = None,
        error_handler: ErrorHandler | None = None,
        supports_ansi: bool | None = None,
    ) -> None:
        super().__init__()
        if base_console is None:
            base_console = get_original_console()

        self.real_console_output = (
            default_real_console_output() if real_console_output is None else real_console_output
        )
        self.record_output = default_record_output() if record_output is None else record_output
        self.base_console = base_console
        self.error_handler = error_handler
        self._supports_ansi = (
            base_console.supports_ansi if supports_ansi is None else supports_ansi
        )
        self._chunks: list[str] = []

        self._columns = base_console.columns
        self._rows = base_console.rows
        self._renderer = Console(
            file=io.StringIO(),
            width=self._columns,
            height=self._rows,
            force_terminal=self._supports_ansi,
            color_system=base_console.color_system if self._supports_ansi else None,
        )
        base_console.add_resize_listener(self._on_resize)

    # --- Terminal metadata (read through to the base console) -------------

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def color_system(self) -> str | None:
        return self.base_console.color_system

    @property
    def supports_ansi(self) -> bool:
        return self._supports_ansi

    def _on_resize(self, columns: int, rows: int) -> None:
        self._columns = columns
        self._rows = rows
        self._renderer.size = (columns, rows)

    # --- Captured output ---------------------------------------------------

    @property
    def outputs(self) -> str:
        """Everything recorded since construction or the last clear()."""
        return "".join(self._chunks)

    def _emit(self, text: str, *, stderr: bool = False) -> None:
        if self.record_output:
            self._chunks.append(text)
        if self.real_console_output:
            self.base_console.write(text, stderr=stderr)

    def error(self, *args: Any) -> None:
        """Log on the error stream, or hand a lone exception to the error handler."""
        if len(args) == 1 and isinstance(args[0], BaseException) and self.error_handler is not None:
            self.error_handler(args[0])
            return
        super().error(*args)

    def print(self, *objects: Any, **kwargs: Any) -> None:
        """Render Rich renderables at this console's width and write the result."""
        with self._renderer.capture() as capture:
            self._renderer.print(*objects, **kwargs)
        self.write(capture.get())

    def clear(self) -> None:
        """Empty `outputs`, and clear the base console when forwarding to it.

        fresh_line() state is kept, but the next fresh_line() starts a new
        line rather than erasing one.
        """
        self._lines.interrupt()
        self._chunks = []
        if self.real_console_output:
            self.base_console.clear()

    # --- Hooking -----------------------------------------------------------

    def hook_async_context(
        self, fn: Callable[..., Any] | None = None, *args: Any, **kwargs: Any
    ) -> Any:
        """Make this console the destination of the shared console.

        With `fn`, calls it with this console active and returns its result;
        the binding ends when the call does. Coroutine functions give an
        awaitable, and generator functions an iterator whose every step runs
        with this console active. Without `fn`, this console stays active for
        the rest of the current task.
        """
        if fn is None:
            context.activate_for_remainder(self)
            return None
        return context.run(self, fn, *args, **kwargs)
