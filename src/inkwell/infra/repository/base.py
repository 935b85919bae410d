"""File-level primitives shared by the repository-backed stores."""

import logging
from dataclasses import dataclass
from typing import Any

from inkwell.core.codec import decode_content
from inkwell.core.exceptions import InkwellError, TransportFailure
from inkwell.core.types import Lookup
from inkwell.infra.github.client import GitHubClient
from inkwell.infra.repository.lifecycle import RepositoryLifecycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    path: str
    text: str
    sha: str


class ContentsStore:
    """Reads, lists and writes whole files in one repository through the contents API."""

    def __init__(self, client: GitHubClient, lifecycle: RepositoryLifecycle) -> None:
        self.client = client
        self.lifecycle = lifecycle

    @property
    def owner(self) -> str:
        return self.lifecycle.owner

    @property
    def repo(self) -> str:
        return self.lifecycle.repo

    async def read_file(self, path: str) -> Lookup[StoredFile]:
        """Fetch a file. A 404 is ``absent``; any other problem is ``failed``."""
        try:
            payload = await self.client.get_contents(self.owner, self.repo, path)
        except TransportFailure as exc:
            if exc.is_not_found:
                return Lookup.absent()
            return Lookup.failed(exc)

        if not isinstance(payload, dict) or "content" not in payload:
            return Lookup.failed(InkwellError(f"{path} is not a file"))
        try:
            text = decode_content(payload["content"])
        except InkwellError as exc:
            return Lookup.failed(exc)
        return Lookup.found(StoredFile(path=path, text=text, sha=payload["sha"]))

    async def list_dir(self, path: str) -> list[dict[str, Any]]:
        """List a directory. A missing directory lists as empty.

        Raises:
            TransportFailure: For failures other than 404

        """
        try:
            entries = await self.client.get_contents(self.owner, self.repo, path)
        except TransportFailure as exc:
            if exc.is_not_found:
                return []
            raise
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if entry.get("type", "file") == "file"]

    async def write_file(self, path: str, text: str, message: str, *, sha: str | None = None) -> None:
        await self.client.put_contents(self.owner, self.repo, path, text, message, sha=sha)
