"""GitHub contents API backend.

Implements RemoteFileApi on top of the GitHub REST v3 contents endpoints.
Revision tokens are git blob SHAs. Content travels base64 encoded.
Files too large to inline are read through the git blobs API; mutations only
need the revision, which the contents metadata always carries.

Status mapping:
- 404 -> ObjectNotFoundError
- 409, and 422 about the "sha" parameter -> WriteConflictError
- any other non-2xx status or network failure -> TransportError
"""

from __future__ import annotations

import base64
import logging
import urllib.parse
from typing import Any

import httpx

from ricesync.storage.errors import (
    ObjectNotFoundError,
    TransportError,
    WriteConflictError,
)
from ricesync.storage.models import (
    DirectoryEntry,
    EntryKind,
    RemoteObject,
    RepositoryInfo,
)
from ricesync.storage.remote_api import RemoteFileApi

logger = logging.getLogger(__name__)

GITHUB_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_USER_AGENT = "ricesync/1.0"
DEFAULT_TIMEOUT_SECONDS = 30.0

_ENTRY_KINDS: dict[str, EntryKind] = {
    "file": EntryKind.FILE,
    "symlink": EntryKind.FILE,
    "dir": EntryKind.DIRECTORY,
}


def _error_message(response: httpx.Response) -> str:
    """Extract GitHub's error message from a response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""


class GitHubFileApi(RemoteFileApi):
    """GitHub-backed versioned file API bound to one repository.

    Uses an httpx.AsyncClient; pass one in for dependency injection (tests
    use httpx.MockTransport). A client created here is closed by aclose().
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repository: str,
        *,
        base_url: str = GITHUB_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the GitHub backend.

        Args:
            token: Personal access or installation token.
            owner: Repository owner used for object operations.
            repository: Repository name used for object operations.
            base_url: API root URL.
            timeout_seconds: Per-request timeout for a client created here.
            http_client: Optional client for dependency injection.
        """
        self._owner = owner
        self._repository = repository
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "User-Agent": GITHUB_USER_AGENT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "github"

    def _repo_url(self, owner: str | None = None, name: str | None = None) -> str:
        owner_part = urllib.parse.quote(owner or self._owner, safe="")
        name_part = urllib.parse.quote(name or self._repository, safe="")
        return f"{self._base_url}/repos/{owner_part}/{name_part}"

    def _contents_url(self, path: str) -> str:
        url = f"{self._repo_url()}/contents"
        if path:
            url = f"{url}/{urllib.parse.quote(path, safe='/')}"
        return url

    async def _request(
        self,
        method: str,
        url: str,
        *,
        path: str | None,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request, mapping network failures to TransportError."""
        try:
            return await self._client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers,
            )
        except httpx.RequestError as exc:
            raise TransportError(
                message=f"GitHub {method} request failed: {exc}",
                path=path,
                cause=exc,
            ) from exc

    @staticmethod
    def _raise_for_status(
        response: httpx.Response,
        *,
        path: str | None,
        mutation: bool = False,
        revision_id: str | None = None,
    ) -> None:
        """Map a non-2xx response onto the store error taxonomy."""
        if response.is_success:
            return

        message = _error_message(response)
        status = response.status_code

        if status == 404:
            raise ObjectNotFoundError(message=message or "Not Found", path=path)

        if mutation and (status == 409 or (status == 422 and "sha" in message)):
            raise WriteConflictError(
                message=message or "Conflict",
                path=path,
                revision_id=revision_id,
            )

        raise TransportError(
            message=f"GitHub responded {status}: {message}",
            path=path,
            status_code=status,
        )

    async def get_repository(self, owner: str, name: str) -> RepositoryInfo:
        response = await self._request("GET", self._repo_url(owner, name), path=None)
        self._raise_for_status(response, path=None)
        data: dict[str, Any] = response.json()
        return RepositoryInfo(
            owner=owner,
            repository=name,
            default_branch=str(data["default_branch"]),
        )

    async def _file_metadata(self, path: str, ref: str) -> dict[str, Any]:
        """Fetch the contents-API description of a file."""
        response = await self._request(
            "GET", self._contents_url(path), path=path, params={"ref": ref}
        )
        self._raise_for_status(response, path=path)
        data = response.json()

        if not isinstance(data, dict) or data.get("type") != "file":
            raise TransportError(message="Path does not refer to a file", path=path)
        return data

    async def _blob_content(self, path: str, sha: str) -> bytes:
        """Fetch file content through the git blobs API.

        Used when the contents API omits content (files over 1 MB).
        """
        url = f"{self._repo_url()}/git/blobs/{urllib.parse.quote(sha, safe='')}"
        response = await self._request("GET", url, path=path)
        self._raise_for_status(response, path=path)
        data: dict[str, Any] = response.json()

        if data.get("encoding") != "base64":
            raise TransportError(
                message=f"Unsupported blob encoding {data.get('encoding')!r}",
                path=path,
                status_code=response.status_code,
            )
        return base64.b64decode(data.get("content", ""))

    async def get_object(self, path: str, ref: str) -> RemoteObject:
        data = await self._file_metadata(path, ref)
        sha = str(data["sha"])

        if data.get("encoding") == "base64" and "content" in data:
            content = base64.b64decode(data["content"])
        else:
            logger.debug("Content of %s not inline; fetching blob %s", path, sha)
            content = await self._blob_content(path, sha)

        return RemoteObject(path=path, content=content, revision_id=sha)

    async def get_revision(self, path: str, ref: str) -> str:
        data = await self._file_metadata(path, ref)
        return str(data["sha"])

    async def put_object(
        self,
        path: str,
        content: bytes,
        *,
        revision_id: str | None,
        ref: str,
        message: str,
    ) -> str:
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": ref,
        }
        if revision_id is not None:
            payload["sha"] = revision_id

        response = await self._request(
            "PUT", self._contents_url(path), path=path, json_body=payload
        )
        self._raise_for_status(response, path=path, mutation=True, revision_id=revision_id)
        data: dict[str, Any] = response.json()
        return str(data["content"]["sha"])

    async def delete_object(
        self,
        path: str,
        *,
        revision_id: str,
        ref: str,
        message: str,
    ) -> None:
        payload = {"message": message, "sha": revision_id, "branch": ref}
        response = await self._request(
            "DELETE", self._contents_url(path), path=path, json_body=payload
        )
        self._raise_for_status(response, path=path, mutation=True, revision_id=revision_id)

    async def list_directory(self, path: str, ref: str) -> list[DirectoryEntry]:
        response = await self._request(
            "GET", self._contents_url(path), path=path, params={"ref": ref}
        )
        self._raise_for_status(response, path=path)
        data = response.json()

        if not isinstance(data, list):
            return []

        entries: list[DirectoryEntry] = []
        for item in data:
            kind = _ENTRY_KINDS.get(item.get("type", ""))
            if kind is None:
                logger.debug("Skipping %s entry %s", item.get("type"), item.get("path"))
                continue
            entries.append(DirectoryEntry(name=item["name"], path=item["path"], kind=kind))
        return entries

    async def aclose(self) -> None:
        """Close the HTTP client if this backend created it."""
        if self._owns_client:
            await self._client.aclose()
