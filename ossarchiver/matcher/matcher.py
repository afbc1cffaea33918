"""
Artifact discovery: turns configured (folder, pattern) pairs into files.

Patterns use Ant syntax, comma separated:

    *.jar                 jar files directly in the folder
    **/*.jar              jar files anywhere below the folder
    reports/, *.log       everything under reports/ plus top-level logs
    (empty)               every file below the folder

Version-control and editor droppings (Ant's default excludes such as
``.git/**`` or ``*~``) are never matched.

Example usage:
    >>> from ossarchiver.matcher import ArtifactSpec, resolve_artifacts
    >>> groups = resolve_artifacts(
    ...     [ArtifactSpec(folder="build/libs", filename="*.jar")],
    ...     Path("/var/lib/ci/workspace/app"),
    ... )
    >>> for folder, files in groups.items():
    ...     print(folder, [f.name for f in files])
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Tuple, Union

from ossarchiver.errors import DiscoveryError
from ossarchiver.normalizer import is_absolute_path, normalize_path, to_forward_slashes
from ossarchiver.utils.logging import get_logger, log_function_call

logger = get_logger(__name__)

PATTERN_SEPARATOR = ","
PARENT_DIR = ".."

DEFAULT_EXCLUDES = [
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/CVS",
    "**/CVS/**",
    "**/.cvsignore",
    "**/SCCS",
    "**/SCCS/**",
    "**/vssver.scc",
    "**/.svn",
    "**/.svn/**",
    "**/.DS_Store",
    "**/.git",
    "**/.git/**",
    "**/.gitattributes",
    "**/.gitignore",
    "**/.gitmodules",
    "**/.hg",
    "**/.hg/**",
    "**/.hgignore",
    "**/.hgsub",
    "**/.hgsubstate",
    "**/.hgtags",
    "**/.bzr",
    "**/.bzr/**",
    "**/.bzrignore",
]


@dataclass(frozen=True)
class ArtifactSpec:
    """
    One configured artifact entry of a job.

    Attributes:
        folder: Folder relative to the workspace ("" = workspace root)
        filename: Ant include pattern(s); empty matches every file
    """

    folder: str = ""
    filename: str = ""


@dataclass(frozen=True)
class ResolvedArtifactGroup:
    """Files matched under one configured folder, in match order."""

    folder: Path
    files: Tuple[Path, ...]


class PathSeverity(str, Enum):
    """Outcome of advisory path validation."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class PathCheck:
    """Advisory validation result for a folder or pattern value."""

    severity: PathSeverity
    message: str = ""


def check_artifact_path(value: str, empty_message: str) -> PathCheck:
    """
    Validate a configured folder or filename value.

    Blank values are allowed but worth a warning (they widen the upload to
    the whole workspace or folder); absolute paths are an error because
    artifacts must live inside the workspace. Discovery skips invalid
    entries on its own, so this is feedback for whoever edits the job.

    Args:
        value: Configured folder or filename pattern
        empty_message: Warning text to use when ``value`` is blank

    Returns:
        PathCheck with severity and message
    """
    if not value or not value.strip():
        return PathCheck(PathSeverity.WARNING, empty_message)
    if value.startswith("/"):
        return PathCheck(PathSeverity.ERROR, "Use a path relative to the workspace")
    return PathCheck(PathSeverity.OK)


def _compile_segment(segment: str) -> str:
    out = []
    for char in segment:
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(char))
    return "".join(out)


def compile_ant_pattern(pattern: str) -> Pattern[str]:
    """
    Compile one Ant pattern into a regex matched against relative paths.

    Relative paths use ``/`` separators. ``**`` spans any number of
    directories (including none); a trailing separator implies ``**``.
    """
    normalized = to_forward_slashes(pattern.strip()).lstrip("/")
    if not normalized or normalized.endswith("/"):
        normalized += "**"

    parts = [part for part in normalized.split("/") if part]
    regex = []
    for index, part in enumerate(parts):
        last = index == len(parts) - 1
        if part == "**":
            regex.append(".*" if last else "(?:[^/]*/)*")
        else:
            regex.append(_compile_segment(part) + ("" if last else "/"))
    return re.compile("".join(regex) + r"\Z", re.DOTALL)


_DEFAULT_EXCLUDE_PATTERNS = [compile_ant_pattern(p) for p in DEFAULT_EXCLUDES]


def split_patterns(filename_pattern: str) -> List[str]:
    """Split a comma-separated include list; blank means ``["**"]``."""
    patterns = [
        p.strip() for p in (filename_pattern or "").split(PATTERN_SEPARATOR) if p.strip()
    ]
    return patterns or ["**"]


def _collapse_folder(folder: str) -> Optional[str]:
    """
    Collapse ``.``/``..`` in a relative folder.

    Returns "" for the root itself, or None if the folder leaves the root.
    """
    collapsed = normalize_path(folder)
    if to_forward_slashes(collapsed).split("/")[0] == PARENT_DIR:
        return None
    return "" if collapsed == "." else collapsed


def _is_excluded(relative: str) -> bool:
    return any(p.match(relative) for p in _DEFAULT_EXCLUDE_PATTERNS)


def list_matching_files(folder: Path, filename_pattern: str) -> List[Path]:
    """
    List regular files below ``folder`` matching ``filename_pattern``.

    Args:
        folder: Existing directory to scan
        filename_pattern: Comma-separated Ant includes ("" = all files)

    Returns:
        Matching files as ``folder / relative`` paths, sorted by relative path

    Raises:
        OSError: If the directory tree cannot be read
    """
    includes = [compile_ant_pattern(p) for p in split_patterns(filename_pattern)]

    matched: List[Tuple[str, Path]] = []
    for candidate in folder.rglob("*"):
        if not candidate.is_file():
            continue
        relative = candidate.relative_to(folder).as_posix()
        if _is_excluded(relative):
            continue
        if any(p.match(relative) for p in includes):
            matched.append((relative, folder / relative))

    matched.sort(key=lambda item: item[0])
    return [path for _, path in matched]


@log_function_call
def resolve_artifacts(
    specs: Iterable[ArtifactSpec],
    root: Union[str, Path],
) -> Dict[Path, List[Path]]:
    """
    Resolve artifact specs against a workspace root.

    Specs are processed in order. Folders are collapsed (``.``/``..``)
    before use. A spec is skipped, silently apart from a debug line, when
    its folder is absolute, climbs above the root, is not an existing
    directory, or contains no matching file. Two specs naming the same
    folder share one entry; the later file list wins.

    Args:
        specs: Configured artifact entries
        root: Workspace root directory

    Returns:
        Ordered mapping of folder path -> matched files

    Raises:
        DiscoveryError: If the filesystem cannot be read
    """
    root_path = Path(root)
    groups: Dict[Path, List[Path]] = {}

    for spec in specs:
        folder = spec.folder or ""
        if is_absolute_path(folder):
            logger.debug(f"Skipping absolute artifact folder: {folder}")
            continue

        collapsed = _collapse_folder(folder)
        if collapsed is None:
            logger.debug(f"Skipping artifact folder outside the workspace: {folder}")
            continue

        folder_path = root_path / collapsed if collapsed else root_path
        try:
            if not folder_path.is_dir():
                logger.debug(f"Skipping missing artifact folder: {folder_path}")
                continue
            files = list_matching_files(folder_path, spec.filename or "")
        except OSError as e:
            raise DiscoveryError(f"Failed to list {folder_path}: {e}") from e

        if not files:
            logger.debug(f"No files match '{spec.filename}' in {folder_path}")
            continue

        groups[folder_path] = files

    logger.info(f"Resolved {len(groups)} artifact group(s)")
    return groups


def list_groups(
    specs: Iterable[ArtifactSpec],
    root: Union[str, Path],
) -> List[ResolvedArtifactGroup]:
    """Same as ``resolve_artifacts`` but returns ``ResolvedArtifactGroup`` objects."""
    return [
        ResolvedArtifactGroup(folder=folder, files=tuple(files))
        for folder, files in resolve_artifacts(specs, root).items()
    ]
