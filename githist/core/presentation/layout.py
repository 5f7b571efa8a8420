"""Projection of a diff onto the visible viewport.

Turns a DiffResult and a scroll window into DisplayRows: line-number labels,
change signs, and span text with tabs expanded and overflow clipped (lines are
never wrapped). Widths are measured in terminal cells.
"""

from prompt_toolkit.utils import get_cwidth

from githist.domain.entities import DiffLine, DiffResult, DisplayRow, Span

# Separator, "|", sign and trailing space around the two line-number columns
GUTTER_PADDING = 4


def line_number_width(diff_result: DiffResult) -> int:
    """Digits needed for the largest line number of a diff (at least 1)."""
    return max(1, len(str(diff_result.max_line_number)))


def gutter_width(number_width: int) -> int:
    return 2 * number_width + GUTTER_PADDING


def _visible_char(char: str) -> tuple[str, int]:
    """Printable form of a character and its cell width."""
    code = ord(char)
    if code < 32 or code == 127:
        # Caret notation, like prompt_toolkit shows control characters
        return "^" + chr((code + 64) % 128), 2
    return char, get_cwidth(char)


def layout_spans(spans: tuple[Span, ...], width: int, tab_size: int) -> tuple[Span, ...]:
    """Expand tabs and clip spans to a number of terminal cells.

    Args:
        spans: Spans of one line.
        width: Available cells.
        tab_size: Columns per tab stop.

    Returns:
        Spans whose combined width is at most ``width``.
    """
    result: list[Span] = []
    column = 0
    clipped = False
    for span in spans:
        pieces: list[str] = []
        for char in span.text:
            if char == "\r":
                continue
            if char == "\t":
                text = " " * (tab_size - column % tab_size)
                cells = len(text)
            else:
                text, cells = _visible_char(char)
            if column + cells > width:
                # Clip: keep what fits of a tab, drop a wide character entirely
                if char == "\t":
                    pieces.append(" " * (width - column))
                    column = width
                clipped = True
                break
            pieces.append(text)
            column += cells
        if pieces:
            result.append(Span("".join(pieces), span.changed))
        if clipped or column >= width:
            break
    return tuple(result)


def _label(number: int | None, width: int) -> str:
    return f"{number:>{width}}" if number is not None else " " * width


def project_line(
    line: DiffLine, text_width: int, number_width: int, tab_size: int
) -> DisplayRow:
    """Project a single diff line."""
    return DisplayRow(
        kind=line.kind,
        sign=line.kind.sign,
        old_label=_label(line.old_lineno, number_width),
        new_label=_label(line.new_lineno, number_width),
        spans=layout_spans(line.spans, text_width, tab_size),
    )


def project(
    diff_result: DiffResult,
    scroll_offset: int,
    viewport_height: int,
    viewport_width: int,
    tab_size: int = 4,
    number_width: int | None = None,
) -> list[DisplayRow]:
    """Project the visible part of a diff into display rows.

    Args:
        diff_result: Diff to project. Sentinel results have no rows.
        scroll_offset: Index of the first visible line.
        viewport_height: Visible rows.
        viewport_width: Visible columns, including the line-number gutter.
        tab_size: Columns per tab stop.
        number_width: Digits of the line-number columns; defaults to what
            this diff needs.

    Returns:
        Exactly min(viewport_height, total_rows - scroll_offset) rows
        (none when the offset is past the end).
    """
    if number_width is None:
        number_width = line_number_width(diff_result)
    text_width = max(0, viewport_width - gutter_width(number_width))
    start = max(0, scroll_offset)
    visible = diff_result.lines[start : start + max(0, viewport_height)]
    return [project_line(line, text_width, number_width, tab_size) for line in visible]
