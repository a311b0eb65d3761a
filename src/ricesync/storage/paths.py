"""Repository path normalization and validation.

All store operations work on normalized, '/'-separated paths relative to the
repository root. The empty string denotes the root itself.
"""

from __future__ import annotations

import re

from ricesync.storage.errors import PathTraversalError

PLACEHOLDER_NAME = ".gitkeep"
GITIGNORE_NAME = ".gitignore"

_REPEATED_SLASHES = re.compile(r"/{2,}")


def _is_path_traversal(path: str) -> bool:
    """Check if a raw path contains traversal or unsafe sequences.

    Detects:
    - Null bytes
    - Backslashes (Windows path separators)
    - Home or drive-letter prefixes (~, C:)
    - "." and ".." segments

    Any other character is allowed; adapters quote paths for transport.
    """
    if "\x00" in path or "\\" in path:
        return True

    if path.startswith("~") or (len(path) >= 2 and path[0].isalpha() and path[1] == ":"):
        return True

    return any(segment in (".", "..") for segment in path.split("/"))


def normalize_path(path: str) -> str:
    """Normalize a repository path.

    Strips surrounding slashes and collapses repeated slashes.

    Args:
        path: Raw repository path.

    Returns:
        Normalized path ("" for the repository root).

    Raises:
        PathTraversalError: If the path contains traversal or unsafe sequences.
    """
    if _is_path_traversal(path):
        raise PathTraversalError(path=path)
    return _REPEATED_SLASHES.sub("/", path).strip("/")


def parent_of(path: str) -> str:
    """Return the normalized parent directory of a path ("" at top level)."""
    normalized = normalize_path(path)
    parent, _, _ = normalized.rpartition("/")
    return parent


def basename(path: str) -> str:
    """Return the final segment of a normalized path."""
    return normalize_path(path).rpartition("/")[2]


def join_path(*parts: str) -> str:
    """Join path parts and normalize the result."""
    return normalize_path("/".join(part for part in parts if part))
