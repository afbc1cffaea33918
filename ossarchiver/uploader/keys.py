"""
Object key construction.

Keys are ``<upload folder>/<group folder>/<file>``, normalized and always
using ``/`` separators regardless of the platform the workspace lives on.
"""

import os
from pathlib import Path, PurePath
from typing import Optional, Union

from ossarchiver.normalizer import normalize_path, to_forward_slashes
from ossarchiver.utils.logging import get_logger

logger = get_logger(__name__)

KEY_SEPARATOR = "/"


def absolute_path(path: Union[str, PurePath]) -> Path:
    """
    Spell ``path`` the way discovery and key building compare it.

    ``Path`` drops ``./``, doubled and trailing separators; ``absolute()``
    anchors relative paths at the working directory. Neither resolves
    symlinks nor collapses ``..``.
    """
    return Path(path).absolute()


def relative_path(
    child: Union[str, PurePath],
    parent: Union[str, PurePath],
    sep: str = os.sep,
) -> Optional[str]:
    """
    Path of ``child`` relative to ``parent`` by plain string prefix.

    This compares the path strings literally; it does not resolve symlinks
    or fold case, so two spellings of the same directory do not match.

    Args:
        child: File or folder path
        parent: Folder expected to contain ``child``
        sep: Separator to strip after the prefix

    Returns:
        Relative path ("" when equal), or None if ``child`` does not start
        with ``parent``
    """
    child_path = str(child)
    parent_path = str(parent)
    if not child_path.startswith(parent_path):
        return None

    result = child_path[len(parent_path):]
    if result.startswith(sep):
        return result[len(sep):]
    return result


def build_key(
    upload_folder: str,
    group_folder: str,
    file_name: str,
    sep: str = os.sep,
) -> str:
    """
    Build the object key for one file.

    Example:
        >>> build_key("build/J/1", "out", "a.txt")
        'build/J/1/out/a.txt'
        >>> build_key("build/J/1", "", "lib/../a.txt")
        'build/J/1/a.txt'

    Args:
        upload_folder: Expanded upload folder template
        group_folder: Group folder relative to the workspace
        file_name: File path relative to the group folder
        sep: Platform separator used in ``group_folder`` and ``file_name``

    Returns:
        Normalized key with forward slashes
    """
    raw = KEY_SEPARATOR.join([
        upload_folder,
        group_folder.replace(sep, KEY_SEPARATOR),
        file_name.replace(sep, KEY_SEPARATOR),
    ])
    key = to_forward_slashes(normalize_path(raw))

    if key == ".." or key.startswith("../"):
        logger.warning(
            f"Object key escapes the upload folder, check the upload folder setting: {key}"
        )
    return key
