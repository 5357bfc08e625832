"""
Line-overwrite tracking for fresh_line() progress output.

fresh_line(line_id, ...) lets a task redraw "its" line in place, the way a
progress counter updates without scrolling the terminal:

    console.fresh_line("download", "3/10 files")
    console.fresh_line("download", "4/10 files")   # replaces the line above

Each console owns one LineTracker. The tracker remembers, per line id, the
text last written and how many terminal rows it occupied (LastLine). When the
same id is written again and nothing else has been written by that console in
between, the tracker prefixes the new text with an erase sequence that moves
the cursor up over exactly those rows and blanks them.

Row counts are stored at write time and never re-measured from the terminal.
If the terminal is resized between two writes, the erase still covers the rows
the previous text was laid out on at the width known back then.

The erase sequence is built with Rich's Control codes, using the same
"cursor up + erase line" pattern Rich's own Live display uses to redraw itself.
"""

from dataclasses import dataclass

from rich.control import Control
from rich.segment import ControlType
from rich.text import Text

# Tab stop width terminals use by default
TAB_SIZE = 8


@dataclass(frozen=True)
class LastLine:
    """The last text written for a line id and the terminal rows it occupied."""

    text: str
    rendered_rows: int


def count_rows(text: str, columns: int | None) -> int:
    """Count the terminal rows `text` occupies when printed at `columns` wide.

    Each newline-separated segment takes at least one row; segments wider than
    the terminal wrap onto ceil(width / columns) rows. Widths are measured in
    terminal cells after stripping ANSI styling, so wide (CJK, emoji)
    characters count double and color codes count zero. Tabs advance to the
    next multiple of TAB_SIZE columns, as the terminal draws them.

    When the width is unknown (None or 0) every segment counts as one row.
    """
    plain = Text.from_ansi(text).plain if "\x1b" in text else text
    rows = 0
    for segment in plain.split("\n"):
        if not columns or columns <= 0:
            rows += 1
            continue
        line = Text(segment)
        line.expand_tabs(TAB_SIZE)
        width = line.cell_len
        rows += max(1, -(-width // columns))
    return rows


def erase_rows(rows: int) -> Control:
    """Control codes that erase the `rows` rows directly above the cursor.

    Assumes the cursor sits at the start of the row below the last written
    line, which is where a write ending in a newline leaves it. Afterwards the
    cursor is at column 0 of the topmost erased row.
    """
    codes: list[tuple[ControlType, int]] = [
        (ControlType.CURSOR_UP, 1),
        (ControlType.ERASE_IN_LINE, 2),
    ] * rows
    return Control(*codes, ControlType.CARRIAGE_RETURN)


class LineTracker:
    """Per-console finite state for the line-overwrite protocol."""

    def __init__(self) -> None:
        self._lines: dict[str, LastLine] = {}
        # Id of the line this console wrote last, None after any other write
        self._most_recent: str | None = None

    @property
    def lines(self) -> dict[str, LastLine]:
        """Snapshot of the tracked lines, keyed by line id."""
        return dict(self._lines)

    @property
    def most_recent(self) -> str | None:
        return self._most_recent

    def interrupt(self) -> None:
        """Record that something other than a fresh line was written."""
        self._most_recent = None

    def render(
        self,
        line_id: str,
        text: str,
        *,
        columns: int | None,
        supports_ansi: bool,
    ) -> str:
        """Return what to write for fresh_line(line_id, ...) and update the state.

        Args:
            line_id: Identifier of the logical line being (re)drawn.
            text: The already formatted line, without a trailing newline.
            columns: Current terminal width, used to count wrapped rows.
            supports_ansi: Whether the destination understands escape codes.
                Without them no erase is attempted and the text is simply
                appended as a new line.

        Returns:
            The text to write, ending in a newline, prefixed with an erase
            sequence when the previous render of `line_id` can be replaced.
        """
        rows = count_rows(text, columns)

        if not supports_ansi:
            self._lines[line_id] = LastLine(text, rows)
            self._most_recent = None
            return text + "\n"

        prefix = ""
        previous = self._lines.get(line_id)
        if previous is not None and self._most_recent == line_id:
            prefix = str(erase_rows(previous.rendered_rows))

        self._lines[line_id] = LastLine(text, rows)
        self._most_recent = line_id
        return prefix + text + "\n"
