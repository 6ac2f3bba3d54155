"""RemoteVersionedBackend: a DocumentStore over the GitHub contents API.

Every document has a revision (the blob ``sha``). A write is the two-step,
unprotected optimistic sequence:

1. the caller resolves the path's current revision (``None`` = create),
2. ``PUT`` the new content with that revision as the precondition.

Nothing re-checks between the two steps and :meth:`write` never retries.
Two writers that both resolved revision R race; the API's own
compare-and-swap lets at most one succeed and the other gets
:class:`ConflictError`. Which one wins is not deterministic. Callers that
want retries go through :func:`~mykb.infrastructure.store.compare_and_swap`.

The bearer token is injected by the caller, never looked up here. Without
one, reads are attempted anonymously (public content) and writes fail with
:class:`AuthError` before any request is made.
"""

from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import quote

import httpx

from mykb.domain.errors import AuthError, ConflictError, NotFoundError, StoreError
from mykb.infrastructure.store import DocumentStore, Precondition, VersionedDocument

logger = logging.getLogger(__name__)

_RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
_JSON_MEDIA_TYPE = "application/vnd.github+json"
_API_VERSION = "2022-11-28"

# Status codes the contents API uses for a stale or missing ``sha``.
_CONFLICT_STATUSES = frozenset({409, 422})
_AUTH_STATUSES = frozenset({401, 403})


class RemoteVersionedBackend(DocumentStore):
    """Revision-tracked store backed by a repository's contents API.

    Args:
        owner: Repository owner.
        repo: Repository name.
        branch: Branch to read from and commit to.
        token: Bearer credential, or None for anonymous reads.
        api_url: API base URL.
        timeout: Per-request timeout in seconds.
        user_agent: ``User-Agent`` header value.
        client: Pre-built ``httpx.Client`` (tests inject one backed by
            ``httpx.MockTransport``). The backend closes only clients it
            created itself.
    """

    supports_listing = False

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        branch: str = "main",
        token: str | None = None,
        api_url: str = "https://api.github.com",
        timeout: float = 10.0,
        user_agent: str = "mykb",
        client: httpx.Client | None = None,
    ) -> None:
        self._owner = owner
        self._repo = repo
        self._branch = branch
        self._token = token
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=api_url, timeout=timeout)
        self._user_agent = user_agent
        logger.debug(
            "Remote store %s/%s@%s (token configured: %s)",
            owner,
            repo,
            branch,
            "yes" if token else "no",
        )

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"/repos/{self._owner}/{self._repo}/contents/{quote(path.strip('/'))}"

    def _headers(self, accept: str) -> dict[str, str]:
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": _API_VERSION,
            "User-Agent": self._user_agent,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(self, method: str, path: str, *, accept: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(
                method, self._url(path), headers=self._headers(accept), **kwargs
            )
        except httpx.HTTPError as exc:
            msg = f"{method} {path} failed: {exc}"
            raise StoreError(msg, path=path) from exc

    def _raise_for_status(self, response: httpx.Response, path: str, action: str) -> None:
        status = response.status_code
        if response.is_success:
            return
        body = response.text[:500]
        logger.error("Remote %s of %s failed: %s - %s", action, path, status, body)
        if status == 404:
            msg = f"No document at {path}"
            raise NotFoundError(msg, path=path)
        if status in _AUTH_STATUSES:
            msg = f"Not authorized to {action} {path} ({status})"
            raise AuthError(msg, path=path)
        msg = f"Failed to {action} {path}: {status}"
        raise StoreError(msg, path=path)

    def _fetch_metadata(self, path: str) -> dict[str, Any] | None:
        """GET the JSON form of *path*; None when absent or not a file.

        A directory comes back as a JSON array of entries.
        """
        response = self._request(
            "GET", path, accept=_JSON_MEDIA_TYPE, params={"ref": self._branch}
        )
        if response.status_code == 404:
            return None
        self._raise_for_status(response, path, "read")
        payload = response.json()
        if not isinstance(payload, dict) or payload.get("type", "file") != "file":
            logger.debug("%s is not a file", path)
            return None
        return payload

    # ------------------------------------------------------------------
    # DocumentStore API
    # ------------------------------------------------------------------

    def read(self, path: str) -> bytes:
        response = self._request("GET", path, accept=_RAW_MEDIA_TYPE, params={"ref": self._branch})
        self._raise_for_status(response, path, "read")
        return response.content

    def read_versioned(self, path: str) -> VersionedDocument:
        payload = self._fetch_metadata(path)
        if payload is None:
            msg = f"No document at {path}"
            raise NotFoundError(msg, path=path)

        revision = str(payload["sha"])
        encoded = payload.get("content")
        if payload.get("encoding") == "base64" and encoded is not None:
            content = base64.b64decode(encoded)
        else:
            # Large files come back without inline content.
            content = self.read(path)
        return VersionedDocument(path=path, content=content, revision=revision)

    def revision(self, path: str) -> str | None:
        payload = self._fetch_metadata(path)
        return None if payload is None else str(payload["sha"])

    def write(
        self,
        path: str,
        content: bytes,
        precondition: Precondition,
        *,
        message: str | None = None,
    ) -> str | None:
        if not self._token:
            msg = f"Cannot write {path}: no credential configured"
            raise AuthError(msg, path=path)

        body: dict[str, Any] = {
            "message": message or f"Update {path}",
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self._branch,
        }
        if not precondition.expect_absent:
            body["sha"] = precondition.revision

        response = self._request("PUT", path, accept=_JSON_MEDIA_TYPE, json=body)
        if response.status_code in _CONFLICT_STATUSES:
            logger.warning(
                "Conflict writing %s (expected %s): %s",
                path,
                precondition.describe(),
                response.status_code,
            )
            msg = f"Document {path} changed since it was read (expected {precondition.describe()})"
            raise ConflictError(msg, path=path, expected=precondition.revision)
        self._raise_for_status(response, path, "write")

        new_revision = str(response.json()["content"]["sha"])
        logger.info("Committed %s -> %s: %s", path, new_revision, body["message"])
        return new_revision

    def exists(self, path: str) -> bool:
        return self.revision(path) is not None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
