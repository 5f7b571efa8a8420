"""Unit tests for the history navigator."""

from unittest.mock import Mock, patch

import pytest

from githist.core.diff.diff_engine import DiffEngine
from githist.core.history.content_fetcher import ContentFetcher
from githist.core.history.revision_cache import RevisionCache
from githist.core.history.revision_index import RevisionIndex
from githist.core.navigation.navigator import (
    HISTORY_READ_NOTICE,
    LATEST_NOTICE,
    OLDEST_NOTICE,
    HistoryNavigator,
)
from githist.core.navigation.view_state import (
    NextRevision,
    PreviousRevision,
    Resize,
    ScrollLine,
    ScrollToEnd,
)
from githist.domain.config import NavigationConfig
from githist.domain.entities import ChangeKind, RevisionDescriptor
from githist.domain.exceptions import NotFoundError, ObjectReadError
from tests.conftest import FakeVCS, contents_for, make_chain, make_revision


def build_navigator(
    revisions: list[RevisionDescriptor],
    vcs: FakeVCS,
    prefetch: bool = False,
    beyond_last_line: bool = False,
    height: int = 2,
) -> tuple[RevisionIndex, RevisionCache, HistoryNavigator]:
    index = RevisionIndex(lambda: iter(revisions))
    cache = RevisionCache(index, ContentFetcher(vcs), DiffEngine())
    config = NavigationConfig(beyond_last_line=beyond_last_line, prefetch=prefetch)
    navigator = HistoryNavigator(index, cache, config, viewport_width=80, viewport_height=height)
    return index, cache, navigator


@pytest.fixture
def chain() -> list[RevisionDescriptor]:
    return make_chain(4)


@pytest.fixture
def vcs(chain: list[RevisionDescriptor]) -> FakeVCS:
    return FakeVCS(contents_for(chain))


class TestStart:
    """Tests for loading the initial revision."""

    def test_starts_on_most_recent_revision(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        state = navigator.start()

        assert state.current_index == 0
        assert state.scroll_offset == 0
        assert navigator.revision == chain[0]
        assert navigator.total_rows == 4
        assert navigator.diff is not None

    def test_empty_history_is_fatal(self, vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator([], vcs)
        with pytest.raises(NotFoundError):
            navigator.start()


class TestRevisionMoves:
    """Tests for NextRevision and PreviousRevision."""

    def test_next_moves_to_older_revision(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        navigator.start()

        state = navigator.apply(NextRevision())

        assert state.current_index == 1
        assert navigator.revision == chain[1]
        assert navigator.total_rows == 3
        assert navigator.notice is None

    def test_previous_at_latest_is_a_no_op(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        before = navigator.start()

        after = navigator.apply(PreviousRevision())

        assert after == before
        assert navigator.notice == LATEST_NOTICE

    def test_next_at_oldest_stays(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        navigator.start()
        for _ in range(3):
            navigator.apply(NextRevision())
        assert navigator.state.current_index == 3
        assert not navigator.has_older

        state = navigator.apply(NextRevision())

        assert state.current_index == 3
        assert navigator.notice == OLDEST_NOTICE

    def test_notice_clears_on_next_event(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        navigator.start()
        navigator.apply(PreviousRevision())
        navigator.apply(ScrollLine(1))
        assert navigator.notice is None

    def test_move_past_frontier_advances_once(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        index, _, navigator = build_navigator(chain, vcs)
        navigator.start()
        frontier = index.known_length

        with patch.object(index, "advance_to", wraps=index.advance_to) as spy:
            for _ in range(frontier):
                navigator.apply(NextRevision())
            spy.assert_called_once_with(frontier)

    def test_move_resets_scroll(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        navigator.start()
        navigator.apply(ScrollToEnd())
        assert navigator.state.scroll_offset == 2

        navigator.apply(NextRevision())
        assert navigator.state.scroll_offset == 0

        navigator.apply(ScrollToEnd())
        navigator.apply(PreviousRevision())
        assert navigator.state.scroll_offset == 0

    def test_newer_and_older_hints(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        navigator.start()
        assert not navigator.has_newer
        assert navigator.has_older

        navigator.apply(NextRevision())
        assert navigator.has_newer

    def test_unreadable_revision_shows_error(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        navigator.start()
        vcs.failing.add(chain[1].identity)

        state = navigator.apply(NextRevision())

        assert state.current_index == 1
        assert navigator.error is not None
        assert navigator.total_rows == 0
        assert navigator.diff is None

        # Moving away clears the error
        navigator.apply(PreviousRevision())
        assert navigator.error is None

    def test_failed_history_walk_keeps_current_revision(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        def broken_walk():
            yield from chain[:3]
            raise ObjectReadError("git log exited with status 128")

        index = RevisionIndex(broken_walk)
        cache = RevisionCache(index, ContentFetcher(vcs), DiffEngine())
        navigator = HistoryNavigator(index, cache, NavigationConfig(prefetch=False))
        navigator.start()
        navigator.apply(NextRevision())

        state = navigator.apply(NextRevision())

        assert state.current_index == 1
        assert navigator.notice is not None
        assert navigator.notice.startswith(HISTORY_READ_NOTICE)
        assert navigator.error is None
        assert navigator.diff is not None

        # The walk is started over on the next attempt
        navigator.apply(NextRevision())
        assert navigator.notice.startswith(HISTORY_READ_NOTICE)
        assert index.known_length == 2

    def test_deleted_revision_has_no_rows(self) -> None:
        added = make_revision("added", change=ChangeKind.ADDED)
        deleted = make_revision(
            "deleted", parents=(added.identity,), minutes=1, change=ChangeKind.DELETED
        )
        vcs = FakeVCS({("file.txt", added.identity): b"x\ny\n"})
        _, _, navigator = build_navigator([deleted, added], vcs)

        navigator.start()

        assert navigator.total_rows == 0
        assert navigator.max_scroll == 0


class TestScrolling:
    """Tests for scroll events through the navigator."""

    def test_scroll_is_clamped(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        navigator.start()

        navigator.apply(ScrollLine(100))
        assert navigator.state.scroll_offset == navigator.max_scroll == 2

        navigator.apply(ScrollLine(-100))
        assert navigator.state.scroll_offset == 0

    def test_beyond_last_line(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs, beyond_last_line=True)
        navigator.start()
        navigator.apply(ScrollToEnd())
        assert navigator.state.scroll_offset == 3

    def test_resize_updates_viewport(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, _, navigator = build_navigator(chain, vcs)
        navigator.start()
        navigator.apply(ScrollToEnd())

        state = navigator.apply(Resize(width=120, height=10))

        assert state.viewport_width == 120
        assert state.viewport_height == 10
        assert state.scroll_offset == 0


class TestPrefetchScheduling:
    """Tests for prefetching in the direction of travel."""

    def test_prefetches_older_neighbour(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, cache, navigator = build_navigator(chain, vcs, prefetch=True)
        with patch.object(cache, "prefetch", return_value=None) as prefetch:
            navigator.start()
            prefetch.assert_called_with(1)

            navigator.apply(NextRevision())
            prefetch.assert_called_with(2)

    def test_prefetches_newer_neighbour_when_going_back(
        self, chain: list[RevisionDescriptor], vcs: FakeVCS
    ) -> None:
        _, cache, navigator = build_navigator(chain, vcs, prefetch=True)
        with patch.object(cache, "prefetch", return_value=None) as prefetch:
            navigator.start()
            navigator.apply(NextRevision())
            navigator.apply(NextRevision())

            navigator.apply(PreviousRevision())
            prefetch.assert_called_with(0)

            navigator.apply(PreviousRevision())
            assert prefetch.call_count == 4

    def test_pending_prefetch_cancelled_on_move(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, cache, navigator = build_navigator(chain, vcs, prefetch=True)
        cache.cancel_prefetch = Mock(return_value=0)  # type: ignore[method-assign]
        with patch.object(cache, "prefetch", return_value=None):
            navigator.start()
            navigator.apply(NextRevision())
        assert cache.cancel_prefetch.call_count == 2

    def test_prefetch_disabled(self, chain: list[RevisionDescriptor], vcs: FakeVCS) -> None:
        _, cache, navigator = build_navigator(chain, vcs, prefetch=False)
        with patch.object(cache, "prefetch") as prefetch:
            navigator.start()
            navigator.apply(NextRevision())
        prefetch.assert_not_called()
