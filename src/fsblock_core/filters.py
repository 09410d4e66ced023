"""Ignore-list filtering for changed paths.

Matching is plain substring containment between absolute paths: an entry of
``/a/b`` excludes ``/a/b/c.txt`` but also ``/a/bc.txt``. This loose policy is
kept for compatibility with existing ignore lists.
"""

import os
from collections.abc import Iterable, Sequence


def normalize_ignore_paths(entries: Iterable[str], base: str | None = None) -> tuple[str, ...]:
    """Resolve ignore entries to absolute paths, once, preserving order.

    Args:
        entries: User-supplied ignore paths (absolute or relative)
        base: Directory that relative entries resolve against (default: cwd)

    Returns:
        Tuple of absolute, normalized paths
    """
    normalized = []
    for entry in entries:
        if not entry:
            continue
        if base is not None and not os.path.isabs(entry):
            entry = os.path.join(base, entry)
        normalized.append(os.path.abspath(entry))
    return tuple(normalized)


def is_excluded(candidate_path: str, ignore_set: Sequence[str]) -> bool:
    """Check whether a path falls under any ignore entry.

    Both sides must already be absolute; see :func:`normalize_ignore_paths`.

    Args:
        candidate_path: Absolute path of the changed file
        ignore_set: Absolute ignore entries

    Returns:
        True if any entry is a substring of the candidate path
    """
    return any(entry in candidate_path for entry in ignore_set)
