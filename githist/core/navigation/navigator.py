"""Navigation over a file's history.

HistoryNavigator is the single owner of the ViewState. Events are applied one
at a time; revision moves resolve the target revision through the cache
(blocking until its diff is available) and then schedule a prefetch of the
next revision in the direction of travel.
"""

import logging
from dataclasses import replace

from githist.core.history.revision_cache import RevisionCache
from githist.core.history.revision_index import RevisionIndex
from githist.core.navigation.view_state import (
    NavigationEvent,
    NextRevision,
    PreviousRevision,
    ViewState,
    apply_scroll,
    max_scroll,
)
from githist.domain.config import NavigationConfig
from githist.domain.entities import DiffResult, RevisionDescriptor
from githist.domain.exceptions import NotFoundError, ObjectReadError

logger = logging.getLogger(__name__)

OLDEST_NOTICE = "Already at the oldest revision"
LATEST_NOTICE = "Already at the latest revision"
HISTORY_READ_NOTICE = "Cannot read older history"


class HistoryNavigator:
    """Applies navigation events to the view state.

    Attributes:
        notice: Informational message produced by the last event, if any.
        error: Read error of the revision currently shown, if any.
    """

    def __init__(
        self,
        index: RevisionIndex,
        cache: RevisionCache,
        config: NavigationConfig | None = None,
        viewport_width: int = 80,
        viewport_height: int = 24,
    ) -> None:
        """Initialize the navigator on the most recent revision.

        Args:
            index: Revision index of the session.
            cache: Revision cache of the session.
            config: Navigation options (defaults if None).
            viewport_width: Initial diff area width.
            viewport_height: Initial diff area height.
        """
        self._index = index
        self._cache = cache
        self._config = config or NavigationConfig()
        self._state = ViewState(
            viewport_width=max(1, viewport_width),
            viewport_height=max(1, viewport_height),
        )
        self._total_rows = 0
        # +1 = towards older revisions, -1 = towards newer ones
        self._direction = 1
        self.notice: str | None = None
        self.error: str | None = None

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def total_rows(self) -> int:
        """Rows of the revision currently shown."""
        return self._total_rows

    @property
    def max_scroll(self) -> int:
        return max_scroll(
            self._total_rows, self._state.viewport_height, self._config.beyond_last_line
        )

    @property
    def revision(self) -> RevisionDescriptor:
        """Descriptor of the revision currently shown."""
        return self._index[self._state.current_index]

    @property
    def diff(self) -> DiffResult | None:
        """Diff of the revision currently shown, None if it could not be read."""
        return self._cache.peek_diff(self._state.current_index)

    @property
    def has_newer(self) -> bool:
        return self._state.current_index > 0

    @property
    def has_older(self) -> bool:
        """False only once the walk is known to end at the current revision."""
        return not (
            self._index.is_exhausted
            and self._state.current_index >= self._index.known_length - 1
        )

    def start(self) -> ViewState:
        """Load the most recent revision.

        Raises:
            NotFoundError: If the file has no history.
            ObjectReadError: If the most recent revision cannot be read.
        """
        self._cache.get_metadata(0)
        diff = self._cache.get_diff(0)
        self._total_rows = len(diff)
        self._state = replace(self._state, current_index=0, scroll_offset=0)
        self._schedule_prefetch()
        return self._state

    def apply(self, event: NavigationEvent) -> ViewState:
        """Apply one navigation event.

        Args:
            event: The event to apply.

        Returns:
            The new view state.
        """
        self.notice = None
        if isinstance(event, NextRevision):
            self._move(1)
        elif isinstance(event, PreviousRevision):
            self._move(-1)
        else:
            self._state = apply_scroll(
                self._state, event, self._total_rows, self._config.beyond_last_line
            )
        return self._state

    def _move(self, step: int) -> None:
        target = self._state.current_index + step
        if target < 0:
            self.notice = LATEST_NOTICE
            return
        try:
            self._cache.get_metadata(target)
        except NotFoundError:
            self.notice = OLDEST_NOTICE
            return
        except ObjectReadError as e:
            # The walk failed; the current revision is still readable
            logger.warning("Cannot extend history to revision %d: %s", target, e.message)
            self.notice = f"{HISTORY_READ_NOTICE}: {e.message}"
            return

        self._direction = step
        try:
            self._total_rows = len(self._cache.get_diff(target))
            self.error = None
        except ObjectReadError as e:
            logger.warning("Cannot show revision %d: %s", target, e.message)
            self._total_rows = 0
            self.error = e.message
        # New content, new scroll context
        self._state = replace(self._state, current_index=target, scroll_offset=0)
        self._schedule_prefetch()

    def _schedule_prefetch(self) -> None:
        if not self._config.prefetch:
            return
        self._cache.cancel_prefetch()
        neighbour = self._state.current_index + self._direction
        if neighbour >= 0:
            self._cache.prefetch(neighbour)
