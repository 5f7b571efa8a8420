"""Version Control System (VCS) port interface.

Defines abstract interface for reading the history of a file from a Git
repository.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from githist.domain.entities import RevisionDescriptor


class VCS(Protocol):
    """Protocol for version control system operations (Git)."""

    def relative_path(self, path: Path) -> str:
        """Convert a filesystem path to a repository-relative POSIX path.

        Args:
            path: Absolute path, or a path relative to the current directory.

        Returns:
            Path relative to the repository root, using forward slashes.

        Raises:
            NotFoundError: If the path is outside the repository.
        """
        ...

    def is_file_at(self, path: str, ref: str = "HEAD") -> bool:
        """Check whether a path names a regular file (blob) at a ref.

        Args:
            path: Repository-relative path.
            ref: Git ref. Default: HEAD.

        Returns:
            True if the path is a blob at the ref.
        """
        ...

    def iter_revisions(
        self,
        path: str,
        first_parent: bool = True,
        follow_renames: bool = True,
    ) -> Iterator[RevisionDescriptor]:
        """Stream the commits that touched a path, newest first.

        The iterator is lazy: commits are read from git only as they are
        consumed. Closing the iterator releases the underlying walk.

        Args:
            path: Repository-relative path of the file at HEAD.
            first_parent: Follow only first parents of merges.
            follow_renames: Continue the walk across renames.

        Yields:
            RevisionDescriptor for each commit touching the path.

        Raises:
            ObjectReadError: If the commit graph cannot be read.
        """
        ...

    def get_file_content(self, path: str, ref: str) -> bytes:
        """Get file content at a specific ref.

        Args:
            path: Repository-relative path.
            ref: Git ref (usually a commit hash).

        Returns:
            File content as bytes.

        Raises:
            FileNotFoundError: If file doesn't exist at ref.
            RuntimeError: If the object cannot be read.
        """
        ...
