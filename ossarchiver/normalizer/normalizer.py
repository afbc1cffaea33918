"""
Path canonicalizer for object-storage keys.

Collapses ``.`` and ``..`` segments and duplicate separators without
touching the filesystem and without ``os.path.normpath``, so the result
is the same on every platform. Both ``/`` and ``\\`` are accepted as
separators; each kept segment is re-joined with the separator character
that preceded it in the input.

Example usage:
    >>> normalize_path("build/job/../out/./a.txt")
    'build/out/a.txt'
    >>> normalize_path("/../etc")
    '/etc'
    >>> normalize_path("../a")
    '../a'
"""

import re
from typing import List, Tuple

# Double backslash (UNC), or an optional drive letter followed by one
# separator. Extra separators after the prefix are consumed and dropped.
ABSOLUTE_PREFIX_PATTERN = re.compile(r"^(\\\\|(?:[A-Za-z]:)?[\\/])[\\/]*")

SEPARATORS = "/\\"
CURRENT_DIR = "."
PARENT_DIR = ".."


def is_absolute_path(path: str) -> bool:
    """Return True if ``path`` starts with an absolute prefix."""
    return ABSOLUTE_PREFIX_PATTERN.match(path) is not None


def to_forward_slashes(path: str) -> str:
    """Replace every backslash in ``path`` with a forward slash."""
    return path.replace("\\", "/")


def _split_prefix(path: str) -> Tuple[str, str]:
    match = ABSOLUTE_PREFIX_PATTERN.match(path)
    if match is None:
        return "", path
    return match.group(1), path[match.end():]


def _split_segments(body: str) -> List[Tuple[str, str]]:
    """
    Split ``body`` into ``(separator, segment)`` pairs.

    The separator is the first character of the run that precedes the
    segment ("" for the first one). Runs of separators count as one and
    a trailing run produces no segment.
    """
    segments: List[Tuple[str, str]] = []
    separator = ""
    start = 0
    i = 0
    end = len(body)
    while i < end:
        if body[i] in SEPARATORS:
            segments.append((separator, body[start:i]))
            separator = body[i]
            while i < end and body[i] in SEPARATORS:
                i += 1
            start = i
        else:
            i += 1
    if start < end:
        segments.append((separator, body[start:]))
    return segments


def normalize_path(path: str) -> str:
    """
    Canonicalize ``path`` by collapsing ``.``, ``..`` and repeated separators.

    Absolute paths (leading separator, drive letter, or UNC double
    backslash) clamp at the root: a ``..`` with nothing left to consume
    is dropped. Relative paths keep such a ``..`` as a literal segment
    because there is no root to collapse against.

    Args:
        path: Any path string, with ``/`` or ``\\`` separators

    Returns:
        Canonical path; ``"."`` when nothing remains

    Example:
        >>> normalize_path("a/b/../c")
        'a/c'
        >>> normalize_path("")
        '.'
    """
    prefix, body = _split_prefix(path)
    absolute = bool(prefix)

    kept: List[Tuple[str, str]] = []
    for separator, segment in _split_segments(body):
        if segment == CURRENT_DIR:
            continue
        if segment == PARENT_DIR:
            if kept and kept[-1][1] != PARENT_DIR:
                kept.pop()
            elif not absolute:
                kept.append((separator, segment))
            continue
        kept.append((separator, segment))

    parts = [prefix]
    for index, (separator, segment) in enumerate(kept):
        if index > 0:
            parts.append(separator)
        parts.append(segment)

    result = "".join(parts)
    return result or CURRENT_DIR
