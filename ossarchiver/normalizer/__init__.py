"""
Platform-independent path normalization.

Turns arbitrary relative or absolute path strings into canonical form for
use as object-storage keys.
"""

from .normalizer import (
    normalize_path,
    is_absolute_path,
    to_forward_slashes,
)

__all__ = [
    "normalize_path",
    "is_absolute_path",
    "to_forward_slashes",
]
