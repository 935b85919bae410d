import logging
import secrets

from pydantic import ValidationError

from inkwell.core import conventions
from inkwell.core.types import Lookup, ShareLink
from inkwell.infra.github.client import GitHubClient
from inkwell.infra.repository.base import ContentsStore
from inkwell.infra.repository.lifecycle import RepositoryLifecycle

logger = logging.getLogger(__name__)

LINK_ID_LENGTH = 22
_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"


def generate_link_id(length: int = LINK_ID_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


class ShareLinkStore(ContentsStore):
    """Share link records stored as ``analytics/links/{link_id}.json``.

    Links are never updated. Expiry is recorded but not enforced here: ``resolve``
    returns expired links and leaves the decision to the reader.
    """

    def __init__(
        self,
        client: GitHubClient,
        lifecycle: RepositoryLifecycle,
        *,
        app_url: str,
        branch: str = "main",
        raw_host: str = "https://raw.githubusercontent.com",
    ) -> None:
        super().__init__(client, lifecycle)
        self.app_url = app_url.rstrip("/")
        self.branch = branch
        self.raw_host = raw_host

    def share_url(self, link_id: str) -> str:
        return f"{self.app_url}/shared/{link_id}"

    async def create(self, document_ref: str, expires_at: str | None = None) -> str:
        """Record a share link for a post and return its public URL.

        Raises:
            TransportFailure: If the record could not be written

        """
        await self.lifecycle.ensure_collection_exists()

        link = ShareLink(
            link_id=generate_link_id(),
            document_ref=document_ref,
            resource_url=conventions.raw_url(self.raw_host, self.owner, self.repo, self.branch, document_ref),
            expires_at=expires_at,
        )
        text = link.model_dump_json(by_alias=True, exclude_none=True, indent=2)
        await self.write_file(conventions.link_path(link.link_id), text, f"New share link: {link.link_id}")
        logger.info("Shared post %s as link %s", document_ref, link.link_id)
        return self.share_url(link.link_id)

    async def lookup(self, link_id: str) -> Lookup[ShareLink]:
        current = await self.read_file(conventions.link_path(link_id))
        if current.is_absent:
            return Lookup.absent()
        if current.is_failed:
            return Lookup.failed(current.error)
        try:
            return Lookup.found(ShareLink.model_validate_json(current.value.text))
        except ValidationError as exc:
            return Lookup.failed(exc)

    async def resolve(self, link_id: str) -> ShareLink | None:
        result = await self.lookup(link_id)
        if result.is_failed:
            logger.warning("Could not resolve link %s: %s", link_id, result.error)
        return result.unwrap_or_none()
