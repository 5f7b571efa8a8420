"""Full-screen history browser.

Shows one revision of a file at a time: a header describing the commit, the
diff against its previous content, and a status bar. Implemented with
prompt_toolkit.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from prompt_toolkit import Application
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.layout import Dimension, HSplit, VSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.mouse_events import MouseEvent, MouseEventType
from prompt_toolkit.styles import Style

from githist.core.history.session import HistorySession
from githist.core.navigation.view_state import (
    NavigationEvent,
    NextRevision,
    PreviousRevision,
    Resize,
    ScrollLine,
    ScrollPage,
    ScrollToEnd,
    ScrollToStart,
)
from githist.core.presentation.colors import GitHistColors, StyleFragments
from githist.core.presentation.header import (
    format_header_lines,
    navigation_hints,
)
from githist.core.presentation.layout import line_number_width, project
from githist.domain.entities import DiffStatus
from githist.domain.exceptions import GitHistError

logger = logging.getLogger(__name__)

# Rows taken by the header (title, summary, change line)
HEADER_ROWS = 3
# Rows around the diff area: header, two separators and the status bar
CHROME_ROWS = HEADER_ROWS + 3
# Rows scrolled per mouse wheel step
WHEEL_LINES = 3

COMPUTING_TEXT = "Computing diff..."
BINARY_TEXT = "Binary file: the contents are not shown"
ABSENT_TEXT = "The file does not exist at this revision"
EMPTY_TEXT = "No line changes"
KEY_HINTS = "←/h:older →/l:newer ↑↓:scroll q:quit"


class _DiffControl(FormattedTextControl):
    """Formatted text control that turns mouse wheel events into scroll events."""

    def __init__(self, get_text: Any, on_wheel: Any) -> None:
        super().__init__(get_text, focusable=False)
        self._on_wheel = on_wheel

    def mouse_handler(self, mouse_event: MouseEvent) -> Any:
        if mouse_event.event_type == MouseEventType.SCROLL_UP:
            self._on_wheel(-WHEEL_LINES)
            return None
        if mouse_event.event_type == MouseEventType.SCROLL_DOWN:
            self._on_wheel(WHEEL_LINES)
            return None
        return NotImplemented


class HistoryUI:
    """Interactive history browser using prompt_toolkit."""

    def __init__(self, session: HistorySession):
        """Initialize the history browser.

        Args:
            session: Started history session to browse.
        """
        self.session = session
        self.navigator = session.navigator
        self.display = session.config.display

        # Events are applied in arrival order by a single consumer task
        self.events: asyncio.Queue[NavigationEvent] | None = None
        self.consumer_task: asyncio.Task[None] | None = None
        self.busy = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="githist-nav")

        state = self.navigator.state
        self._viewport = (state.viewport_width, state.viewport_height)
        # Widest line-number column seen so far; avoids gutter jitter
        self._number_width = 1

        self._build_ui()

    def _build_ui(self) -> None:
        """Build the prompt_toolkit UI layout."""
        kb = self._create_key_bindings()

        header_window = VSplit([
            Window(
                content=FormattedTextControl(self._get_left_hint, focusable=False),
                width=Dimension.exact(3),
            ),
            Window(
                content=FormattedTextControl(self._get_header_text, focusable=False),
                height=Dimension.exact(HEADER_ROWS),
                wrap_lines=False,
            ),
            Window(
                content=FormattedTextControl(self._get_right_hint, focusable=False),
                width=Dimension.exact(3),
            ),
        ])

        self.diff_window = Window(
            content=_DiffControl(self._get_diff_text, self._on_wheel),
            wrap_lines=False,
        )

        status_window = Window(
            content=FormattedTextControl(self._get_status_text, focusable=False),
            height=Dimension.exact(1),
        )

        main_container = HSplit([
            header_window,
            Window(height=Dimension.exact(1), char="─", style="class:separator"),
            self.diff_window,
            Window(height=Dimension.exact(1), char="─", style="class:separator"),
            status_window,
        ])

        style = Style.from_dict(GitHistColors.get_prompt_toolkit_style())

        self.app: Application[Any] = Application(
            layout=Layout(main_container),
            key_bindings=kb,
            style=style,
            full_screen=True,
            mouse_support=True,
            after_render=self._after_render,
        )

    def _create_key_bindings(self) -> KeyBindings:
        """Create key bindings for the UI.

        Returns:
            KeyBindings object.
        """
        kb = KeyBindings()

        # Revisions
        @kb.add("left")
        @kb.add("h")
        def older_revision(event: KeyPressEvent) -> None:
            self.enqueue(NextRevision())

        @kb.add("right")
        @kb.add("l")
        def newer_revision(event: KeyPressEvent) -> None:
            self.enqueue(PreviousRevision())

        # Scrolling
        @kb.add("down")
        @kb.add("j")
        def line_down(event: KeyPressEvent) -> None:
            self.enqueue(ScrollLine(1))

        @kb.add("up")
        @kb.add("k")
        def line_up(event: KeyPressEvent) -> None:
            self.enqueue(ScrollLine(-1))

        @kb.add("pagedown")
        @kb.add("c-f")
        @kb.add("space")
        def page_down(event: KeyPressEvent) -> None:
            self.enqueue(ScrollPage(1))

        @kb.add("pageup")
        @kb.add("c-b")
        def page_up(event: KeyPressEvent) -> None:
            self.enqueue(ScrollPage(-1))

        @kb.add("home")
        @kb.add("g")
        def to_start(event: KeyPressEvent) -> None:
            self.enqueue(ScrollToStart())

        @kb.add("end")
        @kb.add("G")
        def to_end(event: KeyPressEvent) -> None:
            self.enqueue(ScrollToEnd())

        # Exit
        @kb.add("q")
        @kb.add("c-c")
        @kb.add("c-d")
        def exit_app(event: KeyPressEvent) -> None:
            event.app.exit()

        return kb

    def enqueue(self, event: NavigationEvent) -> None:
        """Queue a navigation event for the consumer task."""
        if self.events is not None:
            self.events.put_nowait(event)

    def _on_wheel(self, delta: int) -> None:
        self.enqueue(ScrollLine(delta))

    def _after_render(self, app: Application[Any]) -> None:
        """Turn a change of the diff area's size into a Resize event."""
        info = self.diff_window.render_info
        if info is None:
            return
        size = (info.window_width, info.window_height)
        if size != self._viewport:
            self._viewport = size
            self.enqueue(Resize(width=size[0], height=size[1]))

    async def _consume_events(self) -> None:
        """Apply queued events one at a time, off the event loop."""
        assert self.events is not None
        loop = asyncio.get_running_loop()
        while True:
            event = await self.events.get()
            self.busy = isinstance(event, (NextRevision, PreviousRevision))
            if self.busy:
                self.app.invalidate()
            try:
                await loop.run_in_executor(self._executor, self.navigator.apply, event)
            except GitHistError as e:
                # Keep showing the current revision
                logger.warning("Navigation failed: %s", e.message)
                self.navigator.notice = e.message
            finally:
                self.busy = False
                self.events.task_done()
            self.app.invalidate()

    def _get_left_hint(self) -> StyleFragments:
        left, _ = navigation_hints(self.navigator.has_older, self.navigator.has_newer)
        return [("class:hint", left)]

    def _get_right_hint(self) -> StyleFragments:
        _, right = navigation_hints(self.navigator.has_older, self.navigator.has_newer)
        return [("class:hint", right)]

    def _get_header_text(self) -> StyleFragments:
        """Get the commit title, summary and change lines.

        Returns:
            List of (style, text) tuples for formatted text.
        """
        title, summary, change = format_header_lines(self.navigator.revision, self.display)
        return [
            ("class:title", title + "\n"),
            ("class:summary", summary + "\n"),
            ("class:change", change),
        ]

    def _get_diff_text(self) -> StyleFragments:
        """Get the visible rows of the current diff.

        Returns:
            List of (style, text) tuples for formatted text.
        """
        if self.busy:
            return [("class:placeholder", COMPUTING_TEXT)]
        if self.navigator.error:
            return [("class:error", self.navigator.error)]

        diff = self.navigator.diff
        if diff is None:
            return [("class:placeholder", COMPUTING_TEXT)]
        if diff.status == DiffStatus.BINARY:
            return [("class:placeholder", BINARY_TEXT)]
        if diff.status == DiffStatus.ABSENT:
            return [("class:placeholder", ABSENT_TEXT)]
        if not diff.lines:
            return [("class:placeholder", EMPTY_TEXT)]

        self._number_width = max(self._number_width, line_number_width(diff))
        state = self.navigator.state
        rows = project(
            diff,
            state.scroll_offset,
            state.viewport_height,
            state.viewport_width,
            tab_size=self.display.tab_size,
            number_width=self._number_width,
        )

        fragments: StyleFragments = []
        for i, row in enumerate(rows):
            if i:
                fragments.append(("", "\n"))
            fragments.extend(GitHistColors.row_fragments(row, self.display.emphasize_diff))
        return fragments

    def _get_status_text(self) -> StyleFragments:
        """Get formatted status bar text.

        Returns:
            List of (style, text) tuples for formatted text.
        """
        navigator = self.navigator
        index = self.session.index
        total = f"{index.known_length}" + ("" if index.is_exhausted else "+")
        parts: StyleFragments = [
            ("class:status", f" {navigator.state.current_index + 1}/{total} "),
        ]

        diff = navigator.diff
        if diff is not None and diff.status == DiffStatus.TEXT:
            parts.append(("", f" +{diff.inserted_count} -{diff.deleted_count}"))

        if self.busy:
            parts.append(("class:placeholder", " │ computing..."))
        elif navigator.notice:
            parts.append(("class:notice", f" │ {navigator.notice}"))
        elif navigator.error:
            parts.append(("class:error", " │ read error"))

        parts.append(("class:separator", " │ "))
        parts.append(("class:separator", KEY_HINTS))
        return parts

    async def run_async(self) -> None:
        """Run the history browser until the user quits."""
        self.events = asyncio.Queue()
        self.consumer_task = asyncio.create_task(self._consume_events())
        try:
            await self.app.run_async()
        finally:
            self.consumer_task.cancel()
            # A revision still being computed must not hold up exit
            self._executor.shutdown(wait=False, cancel_futures=True)

    def run(self) -> None:
        """Run the history browser.

        Suppresses all logging output during TUI execution to prevent display
        corruption, then restores original logging state after exit.
        """
        # prompt_toolkit runs in full-screen mode, so any stderr output
        # (including logging) would corrupt the UI
        logging.disable(logging.CRITICAL)
        try:
            asyncio.run(self.run_async())
        finally:
            logging.disable(logging.NOTSET)
