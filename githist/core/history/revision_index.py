"""Lazily extended, ordered index of the revisions that touched a file.

The index consumes a stream of revision descriptors (newest first) and exposes
them as an append-only sequence. Revisions are pulled from the stream only when
a caller asks for an index beyond the known frontier.
"""

from __future__ import annotations

import heapq
import logging
import threading
from collections.abc import Callable, Iterator

from githist.domain.entities import RevisionDescriptor
from githist.domain.exceptions import NotFoundError, ObjectReadError

logger = logging.getLogger(__name__)


def order_same_time_run(run: list[RevisionDescriptor]) -> list[RevisionDescriptor]:
    """Order revisions sharing one commit timestamp deterministically.

    Children stay ahead of their parents; otherwise revisions are ordered by
    identity (ascending), so the result does not depend on the order in which
    they were discovered.

    Args:
        run: Revisions with identical committer timestamps.

    Returns:
        The same revisions in deterministic order.
    """
    if len(run) < 2:
        return list(run)

    by_identity = {rev.identity: rev for rev in run}
    # Number of children inside the run that must precede each revision
    pending_children = dict.fromkeys(by_identity, 0)
    for rev in run:
        for parent in rev.parents:
            if parent in pending_children:
                pending_children[parent] += 1

    ready = [identity for identity, count in pending_children.items() if count == 0]
    heapq.heapify(ready)
    ordered: list[RevisionDescriptor] = []
    while ready:
        rev = by_identity[heapq.heappop(ready)]
        ordered.append(rev)
        for parent in rev.parents:
            if parent in pending_children:
                pending_children[parent] -= 1
                if pending_children[parent] == 0:
                    heapq.heappush(ready, parent)

    if len(ordered) != len(run):
        # Parent links form a cycle only for corrupt input; keep discovery order
        logger.warning("Inconsistent parent links among same-time revisions")
        return list(run)
    return ordered


class RevisionIndex:
    """Append-only sequence of revisions, index 0 being the most recent.

    The underlying stream is opened on first use. Revisions whose committer
    timestamps tie are held back until the whole tie run is known so they
    can be ordered by order_same_time_run().

    Thread-safe: the prefetch worker and the UI may extend it concurrently.
    """

    def __init__(self, open_stream: Callable[[], Iterator[RevisionDescriptor]]) -> None:
        """Initialize the index.

        Args:
            open_stream: Zero-argument callable returning the revision stream,
                newest first. Called at most once.
        """
        self._open_stream = open_stream
        self._stream: Iterator[RevisionDescriptor] | None = None
        self._revisions: list[RevisionDescriptor] = []
        self._seen: set[str] = set()
        self._held: list[RevisionDescriptor] = []
        self._exhausted = False
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._revisions)

    def __getitem__(self, index: int) -> RevisionDescriptor:
        return self._revisions[index]

    @property
    def known_length(self) -> int:
        """Number of revisions discovered so far."""
        return len(self._revisions)

    @property
    def is_exhausted(self) -> bool:
        """True once the whole history has been read."""
        return self._exhausted

    def advance_to(self, index: int) -> RevisionDescriptor:
        """Ensure at least index + 1 revisions are known.

        Args:
            index: Zero-based revision index (0 = most recent).

        Returns:
            The revision at that index.

        Raises:
            NotFoundError: If the history ends before that index.
            ObjectReadError: If the history walk fails.
        """
        if index < 0:
            raise NotFoundError(f"Revision index {index} is out of range")
        with self._lock:
            while len(self._revisions) <= index and not self._exhausted:
                self._pull()
            if index >= len(self._revisions):
                if not self._revisions:
                    raise NotFoundError("The file has no history")
                raise NotFoundError(
                    f"Revision {index + 1} does not exist: "
                    f"the file has {len(self._revisions)} revision(s)"
                )
            return self._revisions[index]

    def _pull(self) -> None:
        """Read one revision from the stream and release what is ordered."""
        if self._stream is None:
            logger.debug("Opening revision stream")
            self._stream = self._open_stream()

        try:
            rev = next(self._stream, None)
        except ObjectReadError:
            # A failed walk cannot be resumed; the next pull starts it over
            # and skips what was already seen
            self._stream = None
            raise
        if rev is None:
            self._exhausted = True
            self._release()
            logger.debug("Revision stream exhausted after %d revisions", len(self._revisions))
            return

        if rev.identity in self._seen:
            logger.debug("Skipping duplicate revision %s", rev.identity)
            return
        self._seen.add(rev.identity)

        if self._held and self._held[-1].committer_time != rev.committer_time:
            self._release()
        self._held.append(rev)

    def _release(self) -> None:
        """Move the held tie run into the sequence, ordered."""
        if not self._held:
            return
        self._revisions.extend(order_same_time_run(self._held))
        self._held = []

    def close(self) -> None:
        """Stop the underlying walk if it is still running."""
        with self._lock:
            stream, self._stream = self._stream, None
            if stream is not None and hasattr(stream, "close"):
                stream.close()
            if not self._exhausted:
                logger.debug("Closed revision stream at %d revisions", len(self._revisions))
            # A closed index never reopens the walk
            self._exhausted = True
            self._release()
