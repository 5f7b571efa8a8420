"""Git adapter implementing VCS protocol using subprocess git commands."""

import codecs
import logging
import subprocess
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import IO

from githist.domain.entities import ChangeKind, RevisionDescriptor
from githist.domain.exceptions import NotFoundError, ObjectReadError, RepositoryError

logger = logging.getLogger(__name__)

# Record and field separators for `git log --format` output
_RECORD_SEP = "\x1e"
_FIELD_SEP = "\x1f"
_LOG_FIELDS = ["%H", "%h", "%an", "%at", "%cn", "%ct", "%P", "%D", "%s"]
LOG_FORMAT = "%x1e" + "%x1f".join(_LOG_FIELDS)

# Bytes read from the log pipe per chunk
_READ_CHUNK = 64 * 1024

# Git status code mappings for --name-status output
# Maps exact status codes to ChangeKind
_EXACT_STATUS_MAP: dict[str, ChangeKind] = {
    "A": ChangeKind.ADDED,
    "D": ChangeKind.DELETED,
    "M": ChangeKind.MODIFIED,
    "T": ChangeKind.MODIFIED,  # Type change (e.g., file -> symlink)
}

# Maps status code prefixes to ChangeKind
# These codes have similarity scores appended (e.g., R100, C050)
_PREFIX_STATUS_MAP: dict[str, ChangeKind] = {
    "R": ChangeKind.RENAMED,
    "C": ChangeKind.ADDED,  # Copy: the file starts its history here
}

# stderr fragments meaning "this path is not in that tree"
_MISSING_PATH_MESSAGES = (
    "does not exist",
    "exists on disk, but not in",
    "not a valid object name",
    "invalid object name",
)


def _unquote_path(path: str) -> str:
    """Undo git's C-style quoting of unusual paths ("a\\tb" -> a<TAB>b)."""
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        raw = codecs.escape_decode(path[1:-1].encode("utf-8"))[0]
        return raw.decode("utf-8", errors="replace")
    return path


def _parse_status_code(parts: list[str]) -> tuple[ChangeKind, str, str | None] | None:
    """Parse a git name-status line and extract change kind and paths.

    Args:
        parts: Split line from git --name-status output.
               Format: [status_code, path] or [status_code, old_path, new_path]
               for renames/copies.

    Returns:
        Tuple of (ChangeKind, path, old_path) or None if status code is unknown.
        old_path is None for additions and equals path for modifications.
    """
    status_code = parts[0]
    paths = [_unquote_path(p) for p in parts[1:]]

    # Check exact matches first
    if status_code in _EXACT_STATUS_MAP:
        kind = _EXACT_STATUS_MAP[status_code]
        path = paths[0]
        return (kind, path, None if kind == ChangeKind.ADDED else path)

    # Check prefix matches (R100, C050, etc.)
    for prefix, kind in _PREFIX_STATUS_MAP.items():
        if status_code.startswith(prefix):
            if len(paths) < 2:
                return (kind, paths[0], None if kind == ChangeKind.ADDED else paths[0])
            old_path, new_path = paths[0], paths[1]
            return (kind, new_path, None if kind == ChangeKind.ADDED else old_path)

    # Unknown status code
    return None


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromtimestamp(int(value), tz=UTC)


def parse_log_record(record: str, fallback_path: str) -> RevisionDescriptor | None:
    """Parse one `git log` record produced with LOG_FORMAT and --name-status.

    Args:
        record: Text between two record separators: a header line of
            separator-delimited fields followed by name-status lines.
        fallback_path: Path to assume when the record carries no status line
            (e.g. a merge commit whose diff git did not print).

    Returns:
        RevisionDescriptor, or None if the record is empty or malformed.
    """
    lines = record.split("\n")
    header = lines[0]
    if not header.strip():
        return None

    fields = header.split(_FIELD_SEP)
    if len(fields) != len(_LOG_FIELDS):
        logger.warning(f"Skipping malformed git log record: {header!r}")
        return None

    identity, short_id, author, author_ts, committer, committer_ts, parents, refs, summary = fields

    change = ChangeKind.MODIFIED
    path = fallback_path
    old_path: str | None = fallback_path
    for line in lines[1:]:
        parts = line.split("\t")
        if len(parts) < 2:
            continue
        parsed = _parse_status_code(parts)
        if parsed is None:
            logger.warning(
                f"Unknown git status code '{parts[0]}' for path '{parts[1]}'. Skipping."
            )
            continue
        change, path, old_path = parsed
        break

    return RevisionDescriptor(
        identity=identity,
        short_identity=short_id,
        author_name=author,
        author_time=_parse_timestamp(author_ts),
        committer_name=committer,
        committer_time=_parse_timestamp(committer_ts),
        summary=summary,
        parents=tuple(parents.split()),
        references=tuple(r.strip() for r in refs.split(",") if r.strip()),
        change=change,
        path=path,
        old_path=old_path,
    )


def _iter_records(stream: IO[bytes]) -> Iterator[str]:
    """Split a byte stream into records, reading only as much as needed."""
    buffer = b""
    separator = _RECORD_SEP.encode()
    while True:
        chunk = stream.read1(_READ_CHUNK)  # type: ignore[attr-defined]
        if not chunk:
            break
        buffer += chunk
        *complete, buffer = buffer.split(separator)
        for raw in complete:
            if raw:
                yield raw.decode("utf-8", errors="replace")
    if buffer:
        yield buffer.decode("utf-8", errors="replace")


class GitAdapter:
    """Git VCS adapter using subprocess calls to git CLI."""

    def __init__(self, repo_root: Path) -> None:
        """Initialize Git adapter.

        Args:
            repo_root: Absolute path to git repository root.

        Raises:
            RepositoryError: If repo_root is not a git repository.
        """
        self.repo_root = repo_root.resolve()
        # Verify this is a git repo
        if not self._is_git_repo():
            raise RepositoryError(
                f"Not a git repository: {self.repo_root}",
                hint="Run git-hist from inside a git working tree",
            )

    @classmethod
    def discover(cls, start: Path) -> "GitAdapter":
        """Open the repository containing a directory.

        Args:
            start: Directory inside the working tree.

        Returns:
            GitAdapter for the enclosing repository.

        Raises:
            RepositoryError: If no usable (non-bare, non-empty) repository is found.
        """
        def rev_parse(option: str) -> str:
            cmd = ["git", "-C", str(start), "rev-parse", option]
            result = subprocess.run(cmd, capture_output=True, check=True)
            return result.stdout.decode("utf-8", errors="replace").strip()

        try:
            if rev_parse("--is-bare-repository") == "true":
                raise RepositoryError("git-hist does not support a bare repository")
            toplevel = rev_parse("--show-toplevel")
        except FileNotFoundError as e:
            raise RepositoryError(
                "git executable not found", hint="Install git and make sure it is on PATH"
            ) from e
        except subprocess.CalledProcessError as e:
            raise RepositoryError(
                f"Failed to open a git repository for {start}",
                hint="Run git-hist from inside a git working tree",
            ) from e

        adapter = cls(Path(toplevel))
        adapter._ensure_has_commits()
        return adapter

    def _is_git_repo(self) -> bool:
        """Check if repo_root is a git repository."""
        try:
            self._run_git(["rev-parse", "--git-dir"], check=True)
            return True
        except (subprocess.CalledProcessError, FileNotFoundError):
            return False

    def _ensure_has_commits(self) -> None:
        try:
            self._run_git(["rev-parse", "--verify", "--quiet", "HEAD"])
        except subprocess.CalledProcessError as e:
            raise RepositoryError(
                f"Repository at {self.repo_root} has no commits yet.",
                hint="Make an initial commit before browsing history",
            ) from e

    def _git_command(self, args: list[str]) -> list[str]:
        return ["git", "-C", str(self.repo_root), "-c", "core.quotePath=false"] + args

    def _run_git(
        self,
        args: list[str],
        check: bool = True,
        capture_output: bool = True,
    ) -> subprocess.CompletedProcess[bytes]:
        """Run a git command in the repository.

        Args:
            args: Git command arguments (without 'git' prefix).
            check: Whether to raise CalledProcessError on non-zero exit.
            capture_output: Whether to capture stdout/stderr.

        Returns:
            CompletedProcess with command results.

        Raises:
            subprocess.CalledProcessError: If check=True and command fails.
        """
        return subprocess.run(
            self._git_command(args),
            capture_output=capture_output,
            check=check,
        )

    def _format_git_error(
        self,
        returncode: int,
        stderr: bytes | None,
        context: str,
    ) -> str:
        """Format git error with full context.

        Args:
            returncode: Exit code of the git process.
            stderr: Captured standard error of the git process.
            context: Human-readable description of what was being done.

        Returns:
            Formatted error message with exit code and stderr.
        """
        message = stderr.decode("utf-8", errors="replace").strip() if stderr else ""

        msg = f"{context} (git exit code {returncode})"
        if message:
            msg += f": {message}"
        else:
            msg += " (no error output from git)"

        return msg

    def relative_path(self, path: Path) -> str:
        """Convert a filesystem path to a repository-relative POSIX path.

        Args:
            path: Absolute path, or a path relative to the current directory.

        Returns:
            Path relative to the repository root, using forward slashes.

        Raises:
            NotFoundError: If the path is outside the repository.
        """
        absolute = path if path.is_absolute() else Path.cwd() / path
        try:
            relative = absolute.resolve().relative_to(self.repo_root)
        except ValueError as e:
            raise NotFoundError(
                f"Path '{path}' is not within repository {self.repo_root}",
                hint="Specify a file inside the current git working tree",
            ) from e
        return relative.as_posix()

    def is_file_at(self, path: str, ref: str = "HEAD") -> bool:
        """Check whether a path names a regular file (blob) at a ref.

        Args:
            path: Repository-relative path.
            ref: Git ref. Default: HEAD.

        Returns:
            True if the path is a blob at the ref.
        """
        result = self._run_git(["cat-file", "-t", f"{ref}:{path}"], check=False)
        if result.returncode != 0:
            return False
        return result.stdout.decode("utf-8", errors="replace").strip() == "blob"

    def iter_revisions(
        self,
        path: str,
        first_parent: bool = True,
        follow_renames: bool = True,
    ) -> Iterator[RevisionDescriptor]:
        """Stream the commits that touched a path, newest first.

        Runs a single `git log` process and parses its output as it is
        consumed; git blocks on the full pipe until more records are read.

        Args:
            path: Repository-relative path of the file at HEAD.
            first_parent: Follow only first parents of merges.
            follow_renames: Continue the walk across renames.

        Yields:
            RevisionDescriptor for each commit touching the path.

        Raises:
            ObjectReadError: If git fails while walking the history.
        """
        # --name-status: report how each commit changed the path
        # -m with --first-parent: show merge diffs against the first parent
        # --follow: track the file across renames (implies rename detection)
        args = ["log", f"--format={LOG_FORMAT}", "--name-status"]
        if first_parent:
            args += ["--first-parent", "-m"]
        if follow_renames:
            args.append("--follow")
        args += ["HEAD", "--", path]

        logger.debug("Starting history walk: %s", " ".join(args))
        # stderr goes to a file: a pipe read only after stdout ends could fill
        # up and block git
        with tempfile.TemporaryFile() as stderr_file:
            proc = subprocess.Popen(
                self._git_command(args),
                stdout=subprocess.PIPE,
                stderr=stderr_file,
            )
            assert proc.stdout is not None
            completed = False
            try:
                current_path = path
                for record in _iter_records(proc.stdout):
                    descriptor = parse_log_record(record, current_path)
                    if descriptor is None:
                        continue
                    # Older commits see the file under its pre-rename name
                    current_path = descriptor.old_path or descriptor.path
                    yield descriptor

                returncode = proc.wait()
                completed = True
                if returncode != 0:
                    stderr_file.seek(0)
                    error_msg = self._format_git_error(
                        returncode, stderr_file.read(), f"Failed to walk history of '{path}'"
                    )
                    raise ObjectReadError(error_msg)
            finally:
                if not completed and proc.poll() is None:
                    # Consumer stopped early: the walk is no longer needed
                    proc.kill()
                    proc.wait()
                proc.stdout.close()

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
        try:
            # cat-file returns the raw blob, no textconv or filters
            result = self._run_git(["cat-file", "blob", f"{ref}:{path}"])
            return result.stdout
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="replace").lower() if e.stderr else ""
            if any(message in stderr for message in _MISSING_PATH_MESSAGES):
                raise FileNotFoundError(f"File '{path}' not found at ref '{ref}'") from e
            error_msg = self._format_git_error(
                e.returncode, e.stderr, f"Failed to get content for '{path}' at ref '{ref}'"
            )
            raise RuntimeError(error_msg) from e
