"""In-memory cache of per-revision diffs.

History is immutable, so entries are never invalidated or evicted; they live
as long as the session. Each revision's diff is computed at most once:
concurrent requests for a revision that is still being computed wait on the
same future instead of starting a second computation.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from githist.core.diff.diff_engine import DiffEngine
from githist.core.history.content_fetcher import ContentFetcher
from githist.core.history.revision_index import RevisionIndex
from githist.domain.entities import ChangeKind, ContentSnapshot, DiffResult, RevisionDescriptor
from githist.domain.exceptions import NotFoundError, ObjectReadError

logger = logging.getLogger(__name__)


class RevisionCache:
    """Memoizes revision metadata and diffs, with bounded background prefetch."""

    def __init__(
        self,
        index: RevisionIndex,
        fetcher: ContentFetcher,
        engine: DiffEngine,
        prefetch_workers: int = 1,
    ) -> None:
        """Initialize the cache.

        Args:
            index: Revision index the cache resolves indices through.
            fetcher: Content fetcher for both sides of each diff.
            engine: Diff engine.
            prefetch_workers: Maximum number of concurrent prefetches.
        """
        self._index = index
        self._fetcher = fetcher
        self._engine = engine
        self._prefetch_workers = prefetch_workers
        self._entries: dict[str, Future[DiffResult]] = {}
        self._prefetches: list[Future[None]] = []
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()
        self._closed = False
        # Number of diff computations started (cache misses)
        self.computations = 0

    def get_metadata(self, index: int) -> RevisionDescriptor:
        """Get the revision at an index, extending the traversal if needed.

        Raises:
            NotFoundError: If the history has fewer revisions.
        """
        if 0 <= index < self._index.known_length:
            return self._index[index]
        return self._index.advance_to(index)

    def get_diff(self, index: int) -> DiffResult:
        """Get the diff of the revision at an index, computing it on first use.

        Blocks while the diff is computed, by this call or a concurrent one.

        Raises:
            NotFoundError: If the history has fewer revisions.
            ObjectReadError: If git cannot read the revision's content.
        """
        revision = self.get_metadata(index)

        with self._lock:
            future = self._entries.get(revision.identity)
            owner = future is None
            if future is None:
                future = Future()
                self._entries[revision.identity] = future
                self.computations += 1

        if not owner:
            return future.result()

        try:
            result = self._compute(revision)
        except BaseException as e:
            # Failed reads are not cached; revisiting the revision retries
            with self._lock:
                del self._entries[revision.identity]
            future.set_exception(e)
            raise
        future.set_result(result)
        return result

    def peek_diff(self, index: int) -> DiffResult | None:
        """Return the diff at an index if it is already computed, without blocking."""
        if not 0 <= index < self._index.known_length:
            return None
        with self._lock:
            future = self._entries.get(self._index[index].identity)
        if future is None or not future.done() or future.exception() is not None:
            return None
        return future.result()

    def _compute(self, revision: RevisionDescriptor) -> DiffResult:
        newer_path = None if revision.change == ChangeKind.DELETED else revision.path
        newer = self._fetcher.fetch(revision.identity, newer_path)
        if newer.is_absent or revision.change == ChangeKind.ADDED:
            older = ContentSnapshot.absent(revision.first_parent, revision.old_path)
        else:
            older = self._fetcher.fetch(revision.first_parent, revision.old_path)
        return self._engine.diff(older, newer)

    def prefetch(self, index: int) -> Future[None] | None:
        """Compute the diff at an index in the background.

        The result is stored in the cache when it completes, whether or not
        anyone is still interested in it.

        Returns:
            Future of the background task, or None if nothing was scheduled.
        """
        if index < 0 or self._closed or self.peek_diff(index) is not None:
            return None
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._prefetch_workers, thread_name_prefix="githist-prefetch"
                )
            future = self._executor.submit(self._prefetch_one, index)
            self._prefetches = [f for f in self._prefetches if not f.done()]
            self._prefetches.append(future)
        return future

    def _prefetch_one(self, index: int) -> None:
        try:
            self.get_diff(index)
        except NotFoundError:
            logger.debug("Nothing to prefetch at revision %d", index)
        except ObjectReadError as e:
            # Left uncached; the navigator reports it if the user gets there
            logger.warning("Prefetch of revision %d failed: %s", index, e.message)

    def cancel_prefetch(self) -> int:
        """Cancel prefetches that have not started yet.

        Prefetches already running are left to finish and store their result.

        Returns:
            Number of prefetches cancelled.
        """
        with self._lock:
            cancelled = sum(1 for future in self._prefetches if future.cancel())
            self._prefetches = [f for f in self._prefetches if not f.done()]
        if cancelled:
            logger.debug("Cancelled %d pending prefetch(es)", cancelled)
        return cancelled

    def close(self) -> None:
        """Stop accepting prefetches and drop the ones not yet started."""
        self._closed = True
        self.cancel_prefetch()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
