"""Line diff between two snapshots of the tracked file.

Lines are aligned with a minimal edit script (see myers.match_lines). Inside
each changed hunk, deleted lines are listed before inserted lines, and the
i-th deleted line is paired with the i-th inserted line. A pair that is
similar enough gets token-level spans marking the parts that differ.
Pairing never changes which lines are inserted or deleted.
"""

import logging
import re
from difflib import SequenceMatcher

from githist.core.diff.myers import match_lines
from githist.domain.entities import (
    ContentSnapshot,
    DiffLine,
    DiffResult,
    DiffStatus,
    LineKind,
    Span,
)

logger = logging.getLogger(__name__)

# Minimum token similarity ratio for a deleted/inserted pair to get spans
SIMILARITY_THRESHOLD = 0.5

# Word runs, whitespace runs, and single punctuation characters
_TOKEN_PATTERN = re.compile(r"\w+|\s+|[^\w\s]")


def split_lines(text: str) -> list[str]:
    """Split text into lines without their "\\n" terminators."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def line_keys(text: str, lines: list[str]) -> list[tuple[str, bool]]:
    """Keys lines are matched on: a last line without "\\n" never equals a terminated one."""
    keys = [(line, True) for line in lines]
    if lines and not text.endswith("\n"):
        keys[-1] = (lines[-1], False)
    return keys


def tokenize(line: str) -> list[str]:
    """Split a line into tokens that join back into the line."""
    return _TOKEN_PATTERN.findall(line)


def _merge_spans(parts: list[tuple[str, bool]]) -> tuple[Span, ...]:
    spans: list[Span] = []
    for text, changed in parts:
        if not text:
            continue
        if spans and spans[-1].changed == changed:
            spans[-1] = Span(spans[-1].text + text, changed)
        else:
            spans.append(Span(text, changed))
    return tuple(spans) or (Span(""),)


def inline_spans(
    old_line: str, new_line: str, threshold: float = SIMILARITY_THRESHOLD
) -> tuple[tuple[Span, ...], tuple[Span, ...]] | None:
    """Compute changed spans for a deleted/inserted line pair.

    Args:
        old_line: The deleted line.
        new_line: The inserted line.
        threshold: Minimum token similarity ratio (0.0-1.0).

    Returns:
        (old_spans, new_spans), or None if the lines are not similar enough
        to be treated as one modified line.
    """
    old_tokens = tokenize(old_line)
    new_tokens = tokenize(new_line)
    matcher = SequenceMatcher(None, old_tokens, new_tokens, autojunk=False)
    if matcher.ratio() < threshold:
        return None

    old_parts: list[tuple[str, bool]] = []
    new_parts: list[tuple[str, bool]] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        changed = tag != "equal"
        old_parts.append(("".join(old_tokens[i1:i2]), changed))
        new_parts.append(("".join(new_tokens[j1:j2]), changed))
    return _merge_spans(old_parts), _merge_spans(new_parts)


class DiffEngine:
    """Compute DiffResults between content snapshots."""

    def __init__(self, similarity_threshold: float = SIMILARITY_THRESHOLD) -> None:
        """Initialize the engine.

        Args:
            similarity_threshold: Token similarity ratio at or above which a
                deleted/inserted pair is highlighted as a modified line.
        """
        self.similarity_threshold = similarity_threshold

    def diff(self, older: ContentSnapshot, newer: ContentSnapshot) -> DiffResult:
        """Diff the previous content of the file against its current content.

        Args:
            older: Content before the revision (absent means empty).
            newer: Content at the revision.

        Returns:
            DiffResult. Sentinel results are returned when the newer snapshot
            is absent or either snapshot is binary.
        """
        if newer.is_absent:
            return DiffResult.sentinel(DiffStatus.ABSENT)
        if newer.is_binary or older.is_binary:
            return DiffResult.sentinel(DiffStatus.BINARY)

        old_lines = split_lines(older.text)
        new_lines = split_lines(newer.text)
        matches = match_lines(
            line_keys(older.text, old_lines), line_keys(newer.text, new_lines)
        )

        lines: list[DiffLine] = []
        i = j = 0
        for match_i, match_j in [*matches, (len(old_lines), len(new_lines))]:
            lines.extend(self._hunk(old_lines, new_lines, i, match_i, j, match_j))
            if match_i < len(old_lines):
                lines.append(
                    DiffLine(
                        kind=LineKind.UNCHANGED,
                        spans=(Span(old_lines[match_i]),),
                        old_lineno=match_i + 1,
                        new_lineno=match_j + 1,
                    )
                )
            i, j = match_i + 1, match_j + 1

        logger.debug(
            "Diffed %s -> %s: %d lines",
            (older.revision or "none")[:12],
            (newer.revision or "none")[:12],
            len(lines),
        )
        return DiffResult(status=DiffStatus.TEXT, lines=tuple(lines))

    def _hunk(
        self,
        old_lines: list[str],
        new_lines: list[str],
        old_start: int,
        old_end: int,
        new_start: int,
        new_end: int,
    ) -> list[DiffLine]:
        """Build the deleted lines then the inserted lines of one hunk."""
        deleted = old_lines[old_start:old_end]
        inserted = new_lines[new_start:new_end]
        old_spans = [(Span(text),) for text in deleted]
        new_spans = [(Span(text),) for text in inserted]

        for k in range(min(len(deleted), len(inserted))):
            pair = inline_spans(deleted[k], inserted[k], self.similarity_threshold)
            if pair is not None:
                old_spans[k], new_spans[k] = pair

        hunk = [
            DiffLine(
                kind=LineKind.DELETED,
                spans=spans,
                old_lineno=old_start + offset + 1,
            )
            for offset, spans in enumerate(old_spans)
        ]
        hunk.extend(
            DiffLine(
                kind=LineKind.INSERTED,
                spans=spans,
                new_lineno=new_start + offset + 1,
            )
            for offset, spans in enumerate(new_spans)
        )
        return hunk
