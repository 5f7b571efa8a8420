"""View state and navigation events.

ViewState is an immutable value; every transition produces a new one. The
scroll transitions here are pure functions of the state, the number of rows
of the current revision and the beyond-last-line policy.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class NextRevision:
    """Move to the next older revision."""


@dataclass(frozen=True)
class PreviousRevision:
    """Move to the next newer revision."""


@dataclass(frozen=True)
class ScrollLine:
    """Scroll by delta rows (negative scrolls up)."""

    delta: int


@dataclass(frozen=True)
class ScrollPage:
    """Scroll by delta viewport heights (negative scrolls up)."""

    delta: int


@dataclass(frozen=True)
class ScrollToStart:
    """Scroll to the first row."""


@dataclass(frozen=True)
class ScrollToEnd:
    """Scroll to the last allowed offset."""


@dataclass(frozen=True)
class Resize:
    """The viewport changed size."""

    width: int
    height: int


NavigationEvent = (
    NextRevision
    | PreviousRevision
    | ScrollLine
    | ScrollPage
    | ScrollToStart
    | ScrollToEnd
    | Resize
)
ScrollEvent = ScrollLine | ScrollPage | ScrollToStart | ScrollToEnd | Resize


@dataclass(frozen=True)
class ViewState:
    """Which revision is shown and where the viewport is scrolled to.

    Attributes:
        current_index: Revision index (0 = most recent).
        scroll_offset: Index of the first visible row.
        viewport_height: Rows available for the diff.
        viewport_width: Columns available for the diff.

    Raises:
        ValueError: If any field is out of range.
    """

    current_index: int = 0
    scroll_offset: int = 0
    viewport_height: int = 1
    viewport_width: int = 1

    def __post_init__(self) -> None:
        """Validate view state after initialization."""
        if self.current_index < 0:
            raise ValueError(f"current_index cannot be negative, got {self.current_index}")
        if self.scroll_offset < 0:
            raise ValueError(f"scroll_offset cannot be negative, got {self.scroll_offset}")
        if self.viewport_height <= 0:
            raise ValueError(f"viewport_height must be positive, got {self.viewport_height}")
        if self.viewport_width <= 0:
            raise ValueError(f"viewport_width must be positive, got {self.viewport_width}")


def max_scroll(total_rows: int, viewport_height: int, beyond_last_line: bool) -> int:
    """Largest allowed scroll offset.

    Args:
        total_rows: Rows of the current revision.
        viewport_height: Visible rows.
        beyond_last_line: Allow scrolling until only the last row is visible.

    Returns:
        Maximum scroll offset (never negative).
    """
    if beyond_last_line:
        return max(0, total_rows - 1)
    return max(0, total_rows - viewport_height)


def clamp_scroll(offset: int, total_rows: int, viewport_height: int, beyond_last_line: bool) -> int:
    """Clamp a scroll offset into [0, max_scroll]."""
    return min(max(0, offset), max_scroll(total_rows, viewport_height, beyond_last_line))


def apply_scroll(
    state: ViewState,
    event: ScrollEvent,
    total_rows: int,
    beyond_last_line: bool,
) -> ViewState:
    """Apply a scroll or resize event.

    Args:
        state: Current view state.
        event: Scroll or resize event.
        total_rows: Rows of the current revision.
        beyond_last_line: Scroll policy.

    Returns:
        New view state with a clamped scroll offset.
    """
    if isinstance(event, Resize):
        state = replace(
            state,
            viewport_width=max(1, event.width),
            viewport_height=max(1, event.height),
        )
        offset = state.scroll_offset
    elif isinstance(event, ScrollLine):
        offset = state.scroll_offset + event.delta
    elif isinstance(event, ScrollPage):
        offset = state.scroll_offset + event.delta * state.viewport_height
    elif isinstance(event, ScrollToStart):
        offset = 0
    elif isinstance(event, ScrollToEnd):
        offset = max_scroll(total_rows, state.viewport_height, beyond_last_line)
    else:
        raise TypeError(f"Not a scroll event: {event!r}")

    offset = clamp_scroll(offset, total_rows, state.viewport_height, beyond_last_line)
    return replace(state, scroll_offset=offset)
