"""Domain entities and value objects.

Core domain models representing a file's history: the revisions that touched
it, the content at each revision and the line diffs between them.
These are pure Python dataclasses with no dependencies on infrastructure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ChangeKind(str, Enum):
    """How a revision changed the tracked file."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class UserRole(str, Enum):
    """Which commit signature a displayed name or date is taken from."""

    AUTHOR = "author"
    COMMITTER = "committer"


@dataclass(frozen=True)
class RevisionDescriptor:
    """A single commit that touched the tracked file.

    Attributes:
        identity: Full commit hash (40 lowercase hex chars for SHA-1 repos).
        short_identity: Abbreviated commit hash as printed by git.
        author_name: Author display name.
        author_time: Author timestamp (timezone-aware).
        committer_name: Committer display name.
        committer_time: Committer timestamp (timezone-aware).
        summary: First line of the commit message.
        parents: Identities of the parent commits, first parent first.
        references: Ref decorations pointing at this commit
            (e.g. "HEAD -> main", "origin/main", "tag: v1.0").
        change: How this commit changed the file.
        path: Repository-relative path of the file in this commit,
            the path that was removed for deletions.
        old_path: Path of the file in the first parent, None for additions.

    Raises:
        ValueError: If identity is not a hex commit hash.
    """

    identity: str
    short_identity: str
    author_name: str
    author_time: datetime
    committer_name: str
    committer_time: datetime
    summary: str
    parents: tuple[str, ...] = ()
    references: tuple[str, ...] = ()
    change: ChangeKind = ChangeKind.MODIFIED
    path: str = ""
    old_path: str | None = None

    _HASH_PATTERN = re.compile(r"^[a-f0-9]{7,64}$")

    def __post_init__(self) -> None:
        """Validate the commit identity."""
        if not self._HASH_PATTERN.match(self.identity):
            raise ValueError(f"Invalid commit identity: {self.identity!r}")

    @property
    def first_parent(self) -> str | None:
        """Identity of the first parent, or None for a root commit."""
        return self.parents[0] if self.parents else None

    def name_of(self, role: UserRole) -> str:
        """Return the author or committer name."""
        return self.author_name if role == UserRole.AUTHOR else self.committer_name

    def time_of(self, role: UserRole) -> datetime:
        """Return the author or committer timestamp."""
        return self.author_time if role == UserRole.AUTHOR else self.committer_time


@dataclass(frozen=True)
class ContentSnapshot:
    """The tracked file's content as it existed at one revision.

    Attributes:
        revision: Identity of the revision the content was read from.
        path: Path the content was read from, None if there was none.
        data: Raw file bytes, or None when the file is absent.
        is_binary: True if the bytes are not interpretable as text.
    """

    revision: str | None
    path: str | None
    data: bytes | None
    is_binary: bool = False

    @property
    def is_absent(self) -> bool:
        return self.data is None

    @property
    def text(self) -> str:
        """Decoded content ("" for absent snapshots)."""
        if self.data is None:
            return ""
        return self.data.decode("utf-8", errors="replace")

    @staticmethod
    def absent(revision: str | None, path: str | None = None) -> ContentSnapshot:
        """Create a snapshot for a file that does not exist at a revision."""
        return ContentSnapshot(revision=revision, path=path, data=None)


class LineKind(str, Enum):
    """Classification of a line in a diff."""

    UNCHANGED = "unchanged"
    INSERTED = "inserted"
    DELETED = "deleted"

    @property
    def sign(self) -> str:
        return {"unchanged": " ", "inserted": "+", "deleted": "-"}[self.value]


class DiffStatus(str, Enum):
    """What kind of result a diff computation produced.

    - TEXT: a regular line diff
    - BINARY: one side is binary, the line diff is suppressed
    - ABSENT: the file does not exist at the revision
    """

    TEXT = "text"
    BINARY = "binary"
    ABSENT = "absent"


@dataclass(frozen=True)
class Span:
    """A run of text inside a line, marked when it differs from its pair."""

    text: str
    changed: bool = False


@dataclass(frozen=True)
class DiffLine:
    """One line of a diff.

    Attributes:
        kind: Whether the line is unchanged, inserted or deleted.
        spans: Line content split into changed/unchanged spans.
        old_lineno: 1-based line number in the older content, if present there.
        new_lineno: 1-based line number in the newer content, if present there.
    """

    kind: LineKind
    spans: tuple[Span, ...]
    old_lineno: int | None = None
    new_lineno: int | None = None

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)

    @property
    def has_emphasis(self) -> bool:
        return any(span.changed for span in self.spans)


@dataclass(frozen=True)
class DiffResult:
    """The diff of one revision against its previous content.

    Sentinel results (binary or absent) carry no lines.
    """

    status: DiffStatus = DiffStatus.TEXT
    lines: tuple[DiffLine, ...] = field(default_factory=tuple)

    @staticmethod
    def sentinel(status: DiffStatus) -> DiffResult:
        """Create a line-less result carrying only a status marker."""
        return DiffResult(status=status, lines=())

    @property
    def inserted_count(self) -> int:
        return sum(1 for line in self.lines if line.kind == LineKind.INSERTED)

    @property
    def deleted_count(self) -> int:
        return sum(1 for line in self.lines if line.kind == LineKind.DELETED)

    @property
    def max_line_number(self) -> int:
        """Largest old or new line number appearing in the diff (0 if none)."""
        numbers = [
            number
            for line in self.lines
            for number in (line.old_lineno, line.new_lineno)
            if number is not None
        ]
        return max(numbers, default=0)

    def __len__(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class DisplayRow:
    """A diff line prepared for painting.

    Attributes:
        kind: Line kind, drives the row color.
        sign: "+", "-" or " ".
        old_label: Right-aligned old line number or blanks.
        new_label: Right-aligned new line number or blanks.
        spans: Tab-expanded text clipped to the viewport width.
    """

    kind: LineKind
    sign: str
    old_label: str
    new_label: str
    spans: tuple[Span, ...]

    @property
    def gutter(self) -> str:
        return f"{self.old_label} {self.new_label}|{self.sign} "

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)
