"""Async GitHub API client using httpx."""

import logging
from types import TracebackType
from typing import Any

import httpx

from inkwell.core.codec import encode_content
from inkwell.core.exceptions import ConcurrentModification, TransportFailure

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase


class GitHubClient:
    """Thin async wrapper over the GitHub REST API.

    Every non-success response is raised as ``TransportFailure`` carrying the status
    code and the server's message. Raw file reads go through a separate client that
    never sends the credential.

    Usage:
        async with GitHubClient(token) as client:
            repo = await client.get_repository("octocat", "posts")
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "inkwell",
            "Authorization": f"Bearer {token}",
        }
        self._http = httpx.AsyncClient(
            base_url=self.base_url, headers=self.headers, timeout=timeout, transport=transport
        )
        self._anonymous = httpx.AsyncClient(timeout=timeout, follow_redirects=True, transport=transport)

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._anonymous.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Issue an authenticated request and return the decoded JSON body.

        Raises:
            TransportFailure: On a non-success status or a network error

        """
        try:
            response = await self._http.request(method, f"/{endpoint.lstrip('/')}", json=json, params=params)
        except httpx.HTTPError as exc:
            raise TransportFailure(None, str(exc)) from exc

        if response.is_error:
            raise TransportFailure(response.status_code, _error_message(response))
        if not response.content:
            return None
        return response.json()

    # Repositories

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        return await self.request("GET", f"repos/{owner}/{repo}")

    async def create_repository(
        self,
        name: str,
        *,
        description: str = "",
        private: bool = False,
        auto_init: bool = True,
    ) -> dict[str, Any]:
        """Create a repository owned by the authenticated user."""
        payload = {"name": name, "description": description, "private": private, "auto_init": auto_init}
        return await self.request("POST", "user/repos", json=payload)

    async def get_authenticated_user(self) -> dict[str, Any]:
        return await self.request("GET", "user")

    # Contents

    async def get_contents(self, owner: str, repo: str, path: str, ref: str | None = None) -> Any:
        """Fetch a file (dict with ``sha`` and base64 ``content``) or a directory listing (list)."""
        params = {"ref": ref} if ref else None
        return await self.request("GET", f"repos/{owner}/{repo}/contents/{path}", params=params)

    async def put_contents(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        *,
        sha: str | None = None,
        branch: str | None = None,
    ) -> dict[str, Any]:
        """Create or update a file.

        Passing the current blob ``sha`` makes the write conditional: GitHub rejects it
        if the file changed in the meantime.

        Raises:
            ConcurrentModification: If the supplied sha is stale, or the file appeared
                after it was seen absent
            TransportFailure: For any other failure

        """
        payload: dict[str, Any] = {"message": message, "content": encode_content(content)}
        if sha:
            payload["sha"] = sha
        if branch:
            payload["branch"] = branch

        try:
            return await self.request("PUT", f"repos/{owner}/{repo}/contents/{path}", json=payload)
        except TransportFailure as exc:
            if exc.status_code == 409 or (exc.status_code == 422 and sha is None and '"sha"' in exc.message):
                raise ConcurrentModification(exc.status_code, exc.message) from exc
            raise

    async def delete_contents(
        self,
        owner: str,
        repo: str,
        path: str,
        sha: str,
        message: str,
        *,
        branch: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": message, "sha": sha}
        if branch:
            payload["branch"] = branch

        try:
            return await self.request("DELETE", f"repos/{owner}/{repo}/contents/{path}", json=payload)
        except TransportFailure as exc:
            if exc.status_code == 409:
                raise ConcurrentModification(exc.status_code, exc.message) from exc
            raise

    # Anonymous reads

    async def fetch_raw(self, url: str) -> str:
        """GET a public URL without the credential and return its text."""
        try:
            response = await self._anonymous.get(url)
        except httpx.HTTPError as exc:
            raise TransportFailure(None, str(exc)) from exc
        if response.is_error:
            raise TransportFailure(response.status_code, f"Failed to fetch raw content: {response.reason_phrase}")
        return response.text
