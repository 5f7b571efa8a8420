"""Pytest configuration and shared fixtures."""

import hashlib
import os
import subprocess
import threading
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from githist.domain.entities import ChangeKind, RevisionDescriptor

# ============================================================================
# Config Isolation
# ============================================================================
# The global config lives under $XDG_CONFIG_HOME; point it at an empty
# directory so a developer's own config never changes test results.


@pytest.fixture(autouse=True)
def isolated_config_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config location at an empty temporary directory."""
    config_home = tmp_path_factory.mktemp("xdg_config")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home


# ============================================================================
# Revision Helpers
# ============================================================================

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def fake_identity(seed: str) -> str:
    """Deterministic 40-character commit hash for a seed string."""
    return hashlib.sha1(seed.encode()).hexdigest()


def make_revision(
    seed: str,
    parents: tuple[str, ...] = (),
    minutes: int = 0,
    change: ChangeKind = ChangeKind.MODIFIED,
    path: str = "file.txt",
    old_path: str | None = "file.txt",
    summary: str | None = None,
    references: tuple[str, ...] = (),
    identity: str | None = None,
) -> RevisionDescriptor:
    """Build a RevisionDescriptor for unit tests.

    Args:
        seed: Name of the revision; its identity is derived from it.
        parents: Parent identities.
        minutes: Commit time, in minutes after BASE_TIME.
        change: How the revision changed the file.
        path: Path of the file in the revision.
        old_path: Path of the file in the first parent.
        summary: Commit summary (defaults to the seed).
        references: Ref decorations.
        identity: Explicit identity, overriding the derived one.
    """
    identity = identity or fake_identity(seed)
    when = BASE_TIME + timedelta(minutes=minutes)
    return RevisionDescriptor(
        identity=identity,
        short_identity=identity[:7],
        author_name=f"Author {seed}",
        author_time=when,
        committer_name=f"Committer {seed}",
        committer_time=when,
        summary=summary if summary is not None else seed,
        parents=parents,
        references=references,
        change=change,
        path=path,
        old_path=None if change == ChangeKind.ADDED else old_path,
    )


def make_chain(count: int, path: str = "file.txt") -> list[RevisionDescriptor]:
    """Build a linear history newest first: the last revision adds the file."""
    oldest_first: list[RevisionDescriptor] = []
    parent: tuple[str, ...] = ()
    for n in range(count):
        rev = make_revision(
            f"rev{n}",
            parents=parent,
            minutes=n,
            change=ChangeKind.ADDED if n == 0 else ChangeKind.MODIFIED,
            path=path,
        )
        oldest_first.append(rev)
        parent = (rev.identity,)
    return list(reversed(oldest_first))


class FakeVCS:
    """In-memory file contents keyed by (path, revision)."""

    def __init__(self, contents: dict[tuple[str, str], bytes]) -> None:
        self.contents = contents
        self.reads: list[tuple[str, str]] = []
        self.failing: set[str] = set()
        self.gate: threading.Event | None = None

    def get_file_content(self, path: str, ref: str) -> bytes:
        self.reads.append((path, ref))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if ref in self.failing:
            raise RuntimeError("object store unavailable")
        try:
            return self.contents[(path, ref)]
        except KeyError:
            raise FileNotFoundError(path) from None


class FakeRepository(FakeVCS):
    """FakeVCS that also walks a fixed history, newest first."""

    def __init__(
        self, revisions: list[RevisionDescriptor], contents: dict[tuple[str, str], bytes]
    ) -> None:
        super().__init__(contents)
        self.revisions = revisions
        self.walks: list[tuple[str, bool, bool]] = []

    def is_file_at(self, path: str, ref: str = "HEAD") -> bool:
        return bool(self.revisions) and self.revisions[0].path == path

    def iter_revisions(
        self, path: str, first_parent: bool = True, follow_renames: bool = True
    ) -> Iterator[RevisionDescriptor]:
        self.walks.append((path, first_parent, follow_renames))
        yield from self.revisions


def contents_for(chain: list[RevisionDescriptor]) -> dict[tuple[str, str], bytes]:
    """File contents for a chain: revision k (oldest first) holds k + 1 lines."""
    oldest_first = list(reversed(chain))
    return {
        (rev.path, rev.identity): "".join(f"line {n}\n" for n in range(k + 1)).encode()
        for k, rev in enumerate(oldest_first)
    }


# ============================================================================
# Git Repository Helpers
# ============================================================================
# These helpers consolidate git setup code to avoid duplication across tests.


def _git(path: Path, *args: str, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[bytes]:
    return subprocess.run(
        ["git", *args],
        cwd=path,
        check=True,
        capture_output=True,
        timeout=10,
        env=env,
    )


def init_git_repo(
    path: Path,
    user_name: str = "Test User",
    user_email: str = "test@example.com",
) -> None:
    """Initialize a git repository with user configuration.

    Args:
        path: Directory to initialize as a git repository.
        user_name: Git user.name configuration value.
        user_email: Git user.email configuration value.

    Raises:
        subprocess.CalledProcessError: If git commands fail.
    """
    _git(path, "init", "-b", "main")
    _git(path, "config", "user.name", user_name)
    _git(path, "config", "user.email", user_email)
    _git(path, "config", "commit.gpgsign", "false")


def git_add_and_commit(
    path: Path,
    message: str = "Initial commit",
    add_all: bool = True,
    when: datetime | None = None,
) -> str:
    """Stage files and create a git commit.

    Args:
        path: Git repository root directory.
        message: Commit message.
        add_all: If True, stages all changes with 'git add -A'.
        when: Author and committer date (defaults to now).

    Returns:
        Full hash of the new commit.

    Raises:
        subprocess.CalledProcessError: If git commands fail.
    """
    if add_all:
        _git(path, "add", "-A")
    env = None
    if when is not None:
        env = dict(os.environ)
        env["GIT_AUTHOR_DATE"] = env["GIT_COMMITTER_DATE"] = when.isoformat()
    _git(path, "commit", "-m", message, env=env)
    return git_head(path)


def git_head(path: Path) -> str:
    """Full hash of HEAD."""
    return _git(path, "rev-parse", "HEAD").stdout.decode().strip()


def create_test_files(path: Path, files: dict[str, str]) -> None:
    """Create multiple files in a directory.

    Args:
        path: Base directory for file creation.
        files: Mapping of relative file paths to file contents.
               Parent directories are created automatically.
    """
    for file_path, content in files.items():
        full_path = path / file_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content)


def create_git_repo(
    path: Path,
    files: dict[str, str] | None = None,
    commit_message: str = "Initial commit",
) -> Path:
    """Create a git repository with optional files in an initial commit.

    Args:
        path: Directory for the repository (created if doesn't exist).
        files: Optional mapping of file paths to contents.
        commit_message: Message for the initial commit.

    Returns:
        Path to the repository root.
    """
    path.mkdir(parents=True, exist_ok=True)
    init_git_repo(path)

    if files:
        create_test_files(path, files)
        git_add_and_commit(path, message=commit_message, when=BASE_TIME)

    return path


@pytest.fixture
def history_repo(tmp_path: Path) -> Path:
    """Repository where notes.txt has four revisions, including a rename.

    History of the file, oldest first:
    1. "Add notes" adds notes.txt
    2. "Edit notes" changes its second line
    3. "Rename notes" moves it to docs/notes.md unchanged
    4. "Extend notes" appends a line
    An unrelated commit touching other.txt sits between 2 and 3.
    """
    repo = create_git_repo(
        tmp_path / "repo",
        files={"notes.txt": "alpha\nbeta\ngamma\n"},
        commit_message="Add notes",
    )
    (repo / "notes.txt").write_text("alpha\nBETA\ngamma\n")
    git_add_and_commit(repo, "Edit notes", when=BASE_TIME + timedelta(hours=1))

    (repo / "other.txt").write_text("unrelated\n")
    git_add_and_commit(repo, "Unrelated change", when=BASE_TIME + timedelta(hours=2))

    (repo / "docs").mkdir()
    _git(repo, "mv", "notes.txt", "docs/notes.md")
    git_add_and_commit(repo, "Rename notes", when=BASE_TIME + timedelta(hours=3))

    (repo / "docs" / "notes.md").write_text("alpha\nBETA\ngamma\ndelta\n")
    git_add_and_commit(repo, "Extend notes", when=BASE_TIME + timedelta(hours=4))
    return repo
