"""Per-file history session.

A HistorySession owns everything that lives exactly as long as one browsing
session: the revision index with its running walk, the revision cache with its
prefetch worker, and the navigator holding the view state.
"""

from __future__ import annotations

import logging
from types import TracebackType

from githist.core.diff.diff_engine import DiffEngine
from githist.core.history.content_fetcher import ContentFetcher
from githist.core.history.revision_cache import RevisionCache
from githist.core.history.revision_index import RevisionIndex
from githist.core.navigation.navigator import HistoryNavigator
from githist.domain.config import GitHistConfig
from githist.domain.exceptions import NotFoundError
from githist.ports.vcs import VCS

logger = logging.getLogger(__name__)


class HistorySession:
    """Wires the history components for one file and tears them down.

    Attributes:
        path: Repository-relative path of the file.
        config: Effective configuration.
        index: Revision index.
        cache: Revision cache.
        navigator: Navigator owning the view state.
    """

    def __init__(
        self,
        path: str,
        config: GitHistConfig,
        index: RevisionIndex,
        cache: RevisionCache,
        navigator: HistoryNavigator,
    ) -> None:
        self.path = path
        self.config = config
        self.index = index
        self.cache = cache
        self.navigator = navigator
        self._closed = False

    @classmethod
    def open(
        cls,
        vcs: VCS,
        path: str,
        config: GitHistConfig | None = None,
        viewport_width: int = 80,
        viewport_height: int = 24,
    ) -> HistorySession:
        """Create a session for a file present at HEAD.

        Nothing is read from the history until start() is called.

        Args:
            vcs: Repository accessor.
            path: Repository-relative path of the file.
            config: Effective configuration (defaults if None).
            viewport_width: Initial diff area width.
            viewport_height: Initial diff area height.

        Returns:
            Unstarted HistorySession.

        Raises:
            NotFoundError: If the path is not a file at HEAD.
        """
        config = config or GitHistConfig.default()
        if not vcs.is_file_at(path, "HEAD"):
            raise NotFoundError(
                f"'{path}' is not a file in the current HEAD",
                hint="Specify a file that exists in the latest commit",
            )

        history = config.history
        index = RevisionIndex(
            lambda: vcs.iter_revisions(
                path,
                first_parent=history.first_parent,
                follow_renames=history.follow_renames,
            )
        )
        engine = DiffEngine()
        cache = RevisionCache(index, ContentFetcher(vcs), engine)
        navigator = HistoryNavigator(
            index,
            cache,
            config.navigation,
            viewport_width=viewport_width,
            viewport_height=viewport_height,
        )
        logger.debug("Opened history session for %s", path)
        return cls(path, config, index, cache, navigator)

    def start(self) -> None:
        """Load the most recent revision.

        Raises:
            NotFoundError: If the file has no history.
            ObjectReadError: If the most recent revision cannot be read.
        """
        self.navigator.start()

    def close(self) -> None:
        """Stop prefetching and the history walk. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self.cache.close()
        self.index.close()
        logger.debug(
            "Closed history session for %s (%d revisions known, %d diffs computed)",
            self.path,
            self.index.known_length,
            self.cache.computations,
        )

    def __enter__(self) -> HistorySession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
