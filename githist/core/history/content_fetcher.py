"""Reads the tracked file's content at a revision from the object store."""

import logging

from githist.domain.entities import ContentSnapshot
from githist.domain.exceptions import ObjectReadError
from githist.ports.vcs import VCS

logger = logging.getLogger(__name__)

# Same sample size git uses for its binary check
BINARY_SAMPLE_BYTES = 8000


def looks_binary(data: bytes) -> bool:
    """Heuristically decide whether content is binary.

    Content is binary if its leading sample contains a NUL byte or the
    content is not valid UTF-8.

    Args:
        data: Raw file bytes.

    Returns:
        True if the content should not be diffed as text.
    """
    if b"\0" in data[:BINARY_SAMPLE_BYTES]:
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return False


class ContentFetcher:
    """Fetch file snapshots through the VCS port."""

    def __init__(self, vcs: VCS) -> None:
        self._vcs = vcs

    def fetch(self, revision: str | None, path: str | None) -> ContentSnapshot:
        """Retrieve the file's content as it existed at a revision.

        Args:
            revision: Commit identity, or None when there is no such revision
                (e.g. the parent of a root commit).
            path: Repository-relative path at that revision, or None when the
                file had no path there.

        Returns:
            ContentSnapshot, absent if the path did not exist at the revision.

        Raises:
            ObjectReadError: If git cannot read the revision's objects.
        """
        if revision is None or path is None:
            return ContentSnapshot.absent(revision, path)

        try:
            data = self._vcs.get_file_content(path, revision)
        except FileNotFoundError:
            logger.debug("'%s' is absent at %s", path, revision)
            return ContentSnapshot.absent(revision, path)
        except (RuntimeError, OSError) as e:
            raise ObjectReadError(
                f"Failed to read '{path}' at {revision[:12]}: {e}",
                revision=revision,
            ) from e

        return ContentSnapshot(
            revision=revision,
            path=path,
            data=data,
            is_binary=looks_binary(data),
        )
