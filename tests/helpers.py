"""Shared helpers for taskconsole tests."""

import io
from dataclasses import dataclass

from taskconsole import NativeConsole


@dataclass
class Terminal:
    """A NativeConsole writing into in-memory streams."""

    console: NativeConsole
    out: io.StringIO
    err: io.StringIO


def make_terminal(width: int = 40, height: int = 10, ansi: bool = True) -> Terminal:
    """Create a fixed-size terminal whose output can be inspected.

    Colors are disabled so that captured text is exactly what was written.
    """
    out, err = io.StringIO(), io.StringIO()
    console = NativeConsole(
        out,
        err,
        width=width,
        height=height,
        force_terminal=ansi,
        color_system=None,
        supports_ansi=ansi,
    )
    return Terminal(console, out, err)
