"""Shared fixtures: an in-memory GitHub contents API served through respx."""

from __future__ import annotations

import base64
import hashlib
import json
import re
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio
import respx

from inkwell.core.config import GitHubSettings, InkwellConfig, SharingSettings
from inkwell.core.context import build_stores
from inkwell.infra.github.client import GitHubClient

OWNER = "octocat"
REPO = "inkwell-posts"

_REPO_PATH = re.compile(r"^/repos/(?P<owner>[^/]+)/(?P<repo>[^/]+)$")
_CONTENTS_PATH = re.compile(r"^/repos/(?P<owner>[^/]+)/(?P<repo>[^/]+)/contents/(?P<path>.+)$")
_RAW_PATH = re.compile(r"^/(?P<owner>[^/]+)/(?P<repo>[^/]+)/(?P<branch>[^/]+)/(?P<path>.+)$")


def _wrap_base64(text: str) -> str:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60)) + "\n"


class FakeGitHub:
    """Just enough of the GitHub REST API to exercise the stores.

    Files live in ``self.files`` as path -> (text, sha). Writes carrying a stale sha
    are rejected with 409 like GitHub does.
    """

    def __init__(self, owner: str = OWNER) -> None:
        self.owner = owner
        self.repos: set[str] = set()
        self.created_repos: list[dict] = []
        self.files: dict[str, tuple[str, str]] = {}
        self.requests: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], int] = {}
        self._after_read: dict[str, Callable[[], None]] = {}
        self._revision = 0

    # Test helpers

    def put_file(self, path: str, text: str) -> str:
        self._revision += 1
        sha = hashlib.sha1(f"{self._revision}:{text}".encode()).hexdigest()
        self.files[path] = (text, sha)
        return sha

    def text(self, path: str) -> str:
        return self.files[path][0]

    def fail(self, method: str, path: str, status: int = 500) -> None:
        """Make every ``method`` request on an API path answer with ``status``."""
        self.failures[(method, path)] = status

    def after_next_read(self, path: str, hook: Callable[[], None]) -> None:
        """Run ``hook`` right after the next GET of ``path`` is served."""
        self._after_read[path] = hook

    def count(self, method: str, path_prefix: str = "") -> int:
        return sum(1 for m, p in self.requests if m == method and p.startswith(path_prefix))

    # Handlers

    def handle(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.requests.append((method, path))

        if (method, path) in self.failures:
            return httpx.Response(self.failures[(method, path)], json={"message": "Simulated failure"})

        if request.headers.get("Authorization") != "Bearer test-token":
            return httpx.Response(401, json={"message": "Bad credentials"})

        if path == "/user" and method == "GET":
            return httpx.Response(200, json={"login": self.owner})
        if path == "/user/repos" and method == "POST":
            payload = json.loads(request.content)
            self.repos.add(payload["name"])
            self.created_repos.append(payload)
            return httpx.Response(201, json={"name": payload["name"], "private": payload["private"]})
        if match := _REPO_PATH.match(path):
            if match["repo"] in self.repos:
                return httpx.Response(200, json={"name": match["repo"], "full_name": f"{self.owner}/{match['repo']}"})
            return httpx.Response(404, json={"message": "Not Found"})
        if match := _CONTENTS_PATH.match(path):
            if match["repo"] not in self.repos:
                return httpx.Response(404, json={"message": "Not Found"})
            return self._contents(method, match["path"], request)
        return httpx.Response(404, json={"message": "Not Found"})

    def handle_raw(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        if "Authorization" in request.headers:
            return httpx.Response(400, text="raw reads are anonymous")
        match = _RAW_PATH.match(request.url.path)
        if match and match["path"] in self.files:
            return httpx.Response(200, text=self.files[match["path"]][0])
        return httpx.Response(404, text="404: Not Found")

    def _entry(self, path: str) -> dict:
        return {"type": "file", "name": path.rsplit("/", 1)[-1], "path": path, "sha": self.files[path][1]}

    def _contents(self, method: str, path: str, request: httpx.Request) -> httpx.Response:
        if method == "GET":
            response = self._read(path)
            hook = self._after_read.pop(path, None)
            if hook is not None:
                hook()
            return response

        payload = json.loads(request.content)
        current = self.files.get(path)
        sha = payload.get("sha")
        if current is not None and sha is None:
            return httpx.Response(422, json={"message": 'Invalid request.\n\n"sha" wasn\'t supplied.'})
        if current is not None and sha != current[1]:
            return httpx.Response(409, json={"message": f"{path} does not match {sha}"})

        if method == "PUT":
            if current is None and sha is not None:
                return httpx.Response(409, json={"message": f"{path} does not exist"})
            text = base64.b64decode(payload["content"]).decode("utf-8")
            new_sha = self.put_file(path, text)
            return httpx.Response(200 if current else 201, json={"content": {"path": path, "sha": new_sha}})
        if method == "DELETE":
            if current is None:
                return httpx.Response(404, json={"message": "Not Found"})
            del self.files[path]
            return httpx.Response(200, json={"content": None, "commit": {"message": payload["message"]}})
        return httpx.Response(405, json={"message": "Method Not Allowed"})

    def _read(self, path: str) -> httpx.Response:
        if path in self.files:
            text, sha = self.files[path]
            entry = self._entry(path)
            entry.update({"content": _wrap_base64(text), "encoding": "base64", "sha": sha})
            return httpx.Response(200, json=entry)
        children = sorted(p for p in self.files if p.startswith(f"{path}/") and "/" not in p[len(path) + 1 :])
        if children:
            return httpx.Response(200, json=[self._entry(p) for p in children])
        return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
def github():
    """The fake API, with respx routing both the API and the raw host to it."""
    fake = FakeGitHub()
    with respx.mock(assert_all_called=False) as router:
        router.route(host="api.github.com").mock(side_effect=fake.handle)
        router.route(host="raw.githubusercontent.com").mock(side_effect=fake.handle_raw)
        yield fake


@pytest.fixture
def config() -> InkwellConfig:
    return InkwellConfig(
        github=GitHubSettings(token="test-token", owner=OWNER, repository=REPO),
        sharing=SharingSettings(app_url="https://inkwell.example"),
    )


@pytest_asyncio.fixture
async def client(github):
    async with GitHubClient("test-token") as gh_client:
        yield gh_client


@pytest.fixture
def stores(client, config):
    return build_stores(client, OWNER, config)
