"""ricesync remote file-store data models.

Provides typed dataclasses for repository coordinates, file handles,
directory listings and lock-table snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class EntryKind(StrEnum):
    """Kind of a directory listing entry."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class RepositoryInfo:
    """Repository description as reported by the remote API.

    Attributes:
        owner: Account or organization owning the repository.
        repository: Repository name.
        default_branch: Name of the repository's default branch.
    """

    owner: str
    repository: str
    default_branch: str


@dataclass(frozen=True)
class RepositoryCoordinates:
    """Resolved coordinate all store operations run against.

    Attributes:
        owner: Account or organization owning the repository.
        repository: Repository name.
        default_branch: Branch every read and write targets.
    """

    owner: str
    repository: str
    default_branch: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repository}@{self.default_branch}"


@dataclass(frozen=True)
class RemoteObject:
    """An object as returned by the remote API.

    Attributes:
        path: Repository path of the object.
        content: Decoded object content.
        revision_id: Opaque revision token of the stored version.
    """

    path: str
    content: bytes
    revision_id: str


@dataclass(frozen=True)
class FileHandle:
    """A file freshly fetched from the remote store.

    Attributes:
        path: Normalized repository path.
        content: File content as bytes.
        revision_id: Revision token, None only when the file does not exist.
    """

    path: str
    content: bytes
    revision_id: str | None

    @property
    def segments(self) -> list[str]:
        """Return the path as an ordered list of segments."""
        return self.path.split("/") if self.path else []


@dataclass(frozen=True)
class DirectoryEntry:
    """A single entry of a directory listing.

    Attributes:
        name: Entry name within its directory.
        path: Full repository path of the entry.
        kind: File or directory.
    """

    name: str
    path: str
    kind: EntryKind

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind == EntryKind.DIRECTORY


@dataclass(frozen=True)
class DirectoryLockEntry:
    """Snapshot of one directory guard entry."""

    normalized_path: str
    held: bool
