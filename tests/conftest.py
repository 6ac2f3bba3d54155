"""Shared pytest fixtures and test helpers for mykb tests."""

from __future__ import annotations

import base64
import hashlib
import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

from mykb.config.settings import KbSettings
from mykb.infrastructure.knowledge_base import KnowledgeBase
from mykb.infrastructure.remote import RemoteVersionedBackend
from mykb.services.telemetry import disable_telemetry

API_URL = "https://api.github.com"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own MYKB_* environment out of tests."""
    for name in (
        "MYKB_CONFIG",
        "MYKB_KB_ROOT",
        "MYKB_STORE__BACKEND",
        "MYKB_REMOTE__TOKEN",
        "MYKB_WRITE__CONFLICT_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _telemetry_off() -> Generator[None]:
    """`-v` turns timing on for the calling context; reset it between tests."""
    yield
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def kb_root(tmp_path: Path) -> Path:
    """Temporary knowledge base directory with the top-level layout."""
    (tmp_path / "profile").mkdir()
    (tmp_path / "projects").mkdir()
    (tmp_path / "journal").mkdir()
    return tmp_path


@pytest.fixture
def settings(kb_root: Path) -> KbSettings:
    return KbSettings.from_cli(kb_root=kb_root)


@pytest.fixture
def kb(settings: KbSettings) -> Generator[KnowledgeBase]:
    """Knowledge base over a LocalBackend on a temp directory."""
    base = KnowledgeBase(settings)
    try:
        yield base
    finally:
        base.close()


@pytest.fixture
def _isolated_kb(kb_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp knowledge base so the CLI uses it."""
    monkeypatch.chdir(kb_root)


# ---------------------------------------------------------------------------
# In-memory contents API
# ---------------------------------------------------------------------------


class FakeContentsApi:
    """Just enough of the GitHub contents API for RemoteVersionedBackend.

    Files are ``path -> (content, sha)``. PUT enforces the ``sha``
    precondition the way the real API does: 409 for a stale sha, 422 when
    creating over an existing file.
    """

    def __init__(self, owner: str = "me", repo: str = "kb", branch: str = "main") -> None:
        self.prefix = f"/repos/{owner}/{repo}/contents/"
        self.branch = branch
        self.files: dict[str, tuple[bytes, str]] = {}
        self.requests: list[httpx.Request] = []
        self.fail_puts_for: set[str] = set()
        self._counter = 0

    def _next_sha(self, content: bytes) -> str:
        self._counter += 1
        return hashlib.sha1(content + str(self._counter).encode()).hexdigest()

    def seed(self, path: str, content: bytes | str) -> str:
        data = content.encode("utf-8") if isinstance(content, str) else content
        sha = self._next_sha(data)
        self.files[path] = (data, sha)
        return sha

    def content(self, path: str) -> bytes:
        return self.files[path][0]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len(self.prefix) :]
        if request.method == "GET":
            return self._get(request, path)
        if request.method == "PUT":
            return self._put(request, path)
        return httpx.Response(405)

    def _get(self, request: httpx.Request, path: str) -> httpx.Response:
        if path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        content, sha = self.files[path]
        if request.headers.get("accept") == "application/vnd.github.raw+json":
            return httpx.Response(200, content=content)
        return httpx.Response(
            200,
            json={
                "type": "file",
                "path": path,
                "sha": sha,
                "encoding": "base64",
                "content": base64.b64encode(content).decode("ascii"),
            },
        )

    def _put(self, request: httpx.Request, path: str) -> httpx.Response:
        if "authorization" not in request.headers:
            return httpx.Response(401, json={"message": "Requires authentication"})
        if path in self.fail_puts_for:
            return httpx.Response(500, json={"message": "Server Error"})
        body: dict[str, Any] = json.loads(request.content)
        current = self.files.get(path)
        expected = body.get("sha")
        if current is None and expected is not None:
            return httpx.Response(409, json={"message": "sha does not match"})
        if current is not None and expected is None:
            return httpx.Response(422, json={"message": '"sha" wasn\'t supplied.'})
        if current is not None and expected != current[1]:
            return httpx.Response(409, json={"message": "sha does not match"})
        content = base64.b64decode(body["content"])
        sha = self._next_sha(content)
        self.files[path] = (content, sha)
        return httpx.Response(
            201 if current is None else 200,
            json={"content": {"path": path, "sha": sha}, "commit": {"message": body["message"]}},
        )


@pytest.fixture
def contents_api() -> FakeContentsApi:
    return FakeContentsApi()


def make_remote(
    api: FakeContentsApi, *, token: str | None = "test-token"
) -> RemoteVersionedBackend:
    """RemoteVersionedBackend wired to *api* through httpx.MockTransport."""
    client = httpx.Client(base_url=API_URL, transport=httpx.MockTransport(api.handler))
    return RemoteVersionedBackend(owner="me", repo="kb", token=token, client=client)


@pytest.fixture
def remote_store(contents_api: FakeContentsApi) -> RemoteVersionedBackend:
    return make_remote(contents_api)


@pytest.fixture
def remote_kb(
    kb_root: Path, remote_store: RemoteVersionedBackend
) -> Generator[KnowledgeBase]:
    """Knowledge base whose store is the fake remote."""
    base = KnowledgeBase(KbSettings.from_cli(kb_root=kb_root), store=remote_store)
    try:
        yield base
    finally:
        base.close()


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_json(root: Path, rel: str, data: Any) -> Path:
    """Write *data* as JSON under *root*, creating parents."""
    target = root / rel
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return target


def read_json(root: Path, rel: str) -> Any:
    return json.loads((root / rel).read_text(encoding="utf-8"))
