"""Text of the commit header shown above the diff."""

from githist.domain.config import DisplayConfig
from githist.domain.entities import ChangeKind, RevisionDescriptor

OLDER_HINT = "<<"
NEWER_HINT = ">>"


def format_date(revision: RevisionDescriptor, config: DisplayConfig) -> str:
    """Format the author or committer date of a revision in local time."""
    return revision.time_of(config.date_of).astimezone().strftime(config.date_format)


def format_commit_title(revision: RevisionDescriptor, config: DisplayConfig) -> str:
    """Build the one-line commit title.

    Args:
        revision: Revision to describe.
        config: Display options (hash length, date format, name/date roles).

    Returns:
        Title such as "Commit: 1a2b3c4 [2024-01-31] (HEAD -> main) @Jane Doe".
    """
    identity = revision.identity if config.full_hash else revision.short_identity
    parts = ["Commit:", identity, format_date(revision, config)]
    if revision.references:
        parts.append(f"({', '.join(revision.references)})")
    parts.append(f"@{revision.name_of(config.name_of)}")
    return " ".join(part for part in parts if part)


def format_change(revision: RevisionDescriptor) -> str:
    """Describe how the revision changed the file, e.g. "* Renamed: a -> b"."""
    if revision.change == ChangeKind.RENAMED and revision.old_path:
        return f"* Renamed: {revision.old_path} -> {revision.path}"
    return f"* {revision.change.value.capitalize()}: {revision.path}"


def format_header_lines(revision: RevisionDescriptor, config: DisplayConfig) -> list[str]:
    """Return the title, summary and change lines of the header."""
    return [
        format_commit_title(revision, config),
        revision.summary,
        format_change(revision),
    ]


def navigation_hints(has_older: bool, has_newer: bool) -> tuple[str, str]:
    """Return the (left, right) hints, blank where there is nothing to go to."""
    left = OLDER_HINT if has_older else " " * len(OLDER_HINT)
    right = NEWER_HINT if has_newer else " " * len(NEWER_HINT)
    return left, right
