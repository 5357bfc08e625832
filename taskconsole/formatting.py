"""
Argument formatting shared by every console in taskconsole.

All consoles (the native passthrough console and every CaptureConsole) turn
their arguments into text with the same rules, so a line captured inside a
hooked task reads exactly like the line the terminal would have shown.

Rules:
  - When the first argument is a string and more arguments follow, printf-style
    directives in it consume those arguments in order:
        %s  text              %d  number            %i  integer
        %f  float             %j  JSON              %o / %O  repr()
        %c  consumed, renders nothing               %%  literal percent
    A directive with no argument left to consume stays in the output as-is.
  - Arguments that were not consumed are appended, separated by single spaces.
  - Strings render unchanged, exceptions render as their formatted traceback,
    anything else renders with str().
"""

import json
import os
import re
import traceback
from typing import Any

_DIRECTIVE = re.compile(r"%[sdifjoOc%]")

# Frames from this directory are hidden in trace() output
_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__)) + os.sep


def render_value(value: Any) -> str:
    """Render a single argument the way a console prints it."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseException):
        return "".join(traceback.format_exception(value)).rstrip("\n")
    return str(value)


def _to_number(value: Any) -> str:
    if isinstance(value, int):
        return str(int(value))
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "NaN"
    if number.is_integer():
        return str(int(number))
    return str(number)


def _to_integer(value: Any) -> str:
    try:
        return str(int(float(value)))
    except (TypeError, ValueError, OverflowError):
        return "NaN"


def _to_float(value: Any) -> str:
    try:
        return str(float(value))
    except (TypeError, ValueError):
        return "NaN"


def _to_json(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except ValueError:
        # json raises ValueError on circular references
        return "[Circular]"


_CONVERTERS = {
    "s": render_value,
    "d": _to_number,
    "i": _to_integer,
    "f": _to_float,
    "j": _to_json,
    "o": repr,
    "O": repr,
    "c": lambda value: "",
}


def format_args(*args: Any) -> str:
    """Format console arguments into a single line of text.

    Args:
        *args: The arguments passed to a console method such as log().

    Returns:
        The formatted text, without a trailing newline.

    Example:
        >>> format_args("%s took %dms", "capture", 12.0, "(cached)")
        'capture took 12ms (cached)'
    """
    if not args:
        return ""

    first = args[0]
    pending = list(args[1:])
    if not isinstance(first, str) or not pending or "%" not in first:
        return " ".join(render_value(arg) for arg in args)

    def substitute(match: re.Match[str]) -> str:
        directive = match.group()
        if directive == "%%":
            return "%"
        if not pending:
            return directive
        return _CONVERTERS[directive[1]](pending.pop(0))

    head = _DIRECTIVE.sub(substitute, first)
    return " ".join([head, *(render_value(arg) for arg in pending)])


def format_trace(*args: Any) -> str:
    """Format a trace() call: a "Trace" header line followed by the caller's stack.

    Frames that belong to taskconsole itself are left out, so the stack ends at
    the line that called trace() regardless of how the call was routed.
    """
    message = format_args(*args)
    header = f"Trace: {message}" if message else "Trace"
    frames = [
        frame for frame in traceback.extract_stack() if not frame.filename.startswith(_PACKAGE_DIR)
    ]
    stack = "".join(traceback.format_list(frames)).rstrip("\n")
    return f"{header}\n{stack}" if stack else header
