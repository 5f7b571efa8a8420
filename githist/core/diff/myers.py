"""Minimal line alignment (Myers' O(ND) shortest edit script).

Only the matched index pairs are returned; everything not matched is a
deletion (from the first sequence) or an insertion (into the second).
"""

from collections.abc import Hashable, Sequence


def _common_prefix(a: Sequence[Hashable], b: Sequence[Hashable]) -> int:
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[i] == b[i]:
        i += 1
    return i


def _edit_distance(a: Sequence[Hashable], b: Sequence[Hashable]) -> int:
    """Number of insertions plus deletions of a shortest edit script (forward Myers)."""
    n, m = len(a), len(b)
    if n == 0 or m == 0:
        return n + m

    max_d = n + m
    offset = max_d + 1
    v = [0] * (2 * max_d + 3)
    end_k = n - m

    for d in range(max_d + 1):
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[offset + k - 1] < v[offset + k + 1]):
                x = v[offset + k + 1]
            else:
                x = v[offset + k - 1] + 1
            y = x - k
            # Follow the snake as far as it goes
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v[offset + k] = x
        if -d <= end_k <= d and (end_k + d) % 2 == 0 and v[offset + end_k] >= n:
            return d
    return max_d


def _earliest_alignment(
    a: Sequence[Hashable], b: Sequence[Hashable], common: int
) -> list[tuple[int, int]]:
    """Lexicographically smallest alignment with ``common`` matched pairs.

    Every minimal edit path stays between diagonals -insertions and
    deletions, so the table of best remaining matches is only filled inside
    that band. ``rows[i][c]`` holds the most matches on a path from (i, j) to
    the end, where c = j - i + deletions.
    """
    n, m = len(a), len(b)
    if common == 0:
        return []
    deletions = n - common
    insertions = m - common
    width = deletions + insertions + 1

    rows: list[list[int]] = [[-1] * width for _ in range(n + 1)]
    for i in range(n, -1, -1):
        row = rows[i]
        below = rows[i + 1] if i < n else row
        for c in range(width - 1, -1, -1):
            j = i + c - deletions
            if j < 0 or j > m:
                continue
            if i == n or j == m:
                row[c] = 0
                continue
            best = row[c + 1] if c + 1 < width else -1
            if c > 0 and below[c - 1] > best:
                best = below[c - 1]
            if a[i] == b[j] and below[c] + 1 > best:
                best = below[c] + 1
            row[c] = best

    matches: list[tuple[int, int]] = []
    i = j = 0
    for needed in range(common, 0, -1):
        i, j = _first_match(a, b, rows, i, j, needed, deletions, insertions)
        matches.append((i, j))
        i += 1
        j += 1
    return matches


def _first_match(
    a: Sequence[Hashable],
    b: Sequence[Hashable],
    rows: list[list[int]],
    i: int,
    j: int,
    needed: int,
    deletions: int,
    insertions: int,
) -> tuple[int, int]:
    """Smallest pair from (i, j) that still leaves ``needed - 1`` matches after it."""
    for x in range(i, len(a)):
        below = rows[x + 1]
        for y in range(max(j, x - deletions), min(len(b), x + insertions + 1)):
            if a[x] == b[y] and below[y - x + deletions] == needed - 1:
                return x, y
    raise ValueError(f"No alignment continues from ({i}, {j})")


def match_lines(a: Sequence[Hashable], b: Sequence[Hashable]) -> list[tuple[int, int]]:
    """Align two sequences with the fewest insertions and deletions.

    The common prefix is matched directly, and elements that occur in only
    one of the sequences are left out of the search (they can never be
    matched), which keeps the search small for heavily rewritten files.
    Among minimal alignments the one whose (index_in_a, index_in_b) pairs
    are lexicographically smallest is returned, so matched elements take
    the earliest positions.

    Args:
        a: Older sequence (e.g. lines).
        b: Newer sequence.

    Returns:
        Matched (index_in_a, index_in_b) pairs, strictly increasing in both.
    """
    prefix = _common_prefix(a, b)
    a_mid = a[prefix:]
    b_mid = b[prefix:]

    b_values = set(b_mid)
    a_values = set(a_mid)
    a_keep = [i for i, item in enumerate(a_mid) if item in b_values]
    b_keep = [j for j, item in enumerate(b_mid) if item in a_values]
    a_kept = [a_mid[i] for i in a_keep]
    b_kept = [b_mid[j] for j in b_keep]

    common = (len(a_kept) + len(b_kept) - _edit_distance(a_kept, b_kept)) // 2
    middle = _earliest_alignment(a_kept, b_kept, common)

    matches = [(i, i) for i in range(prefix)]
    matches.extend((prefix + a_keep[i], prefix + b_keep[j]) for i, j in middle)
    return matches
