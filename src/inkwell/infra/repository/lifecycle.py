import logging

from inkwell.core.exceptions import TransportFailure
from inkwell.infra.github.client import GitHubClient

logger = logging.getLogger(__name__)


class RepositoryLifecycle:
    """Makes sure the backing repository exists before anything is read or written."""

    def __init__(self, client: GitHubClient, owner: str, repo: str, *, description: str = "") -> None:
        self.client = client
        self.owner = owner
        self.repo = repo
        self.description = description

    async def ensure_collection_exists(self) -> None:
        """Create the repository on first use.

        Called before every multi-step operation; the extra round trip is accepted
        instead of remembering the outcome. Only a 404 triggers creation, other
        failures are raised.
        """
        try:
            await self.client.get_repository(self.owner, self.repo)
        except TransportFailure as exc:
            if not exc.is_not_found:
                raise
            logger.info("Repository %s/%s not found, creating it", self.owner, self.repo)
            await self.client.create_repository(
                self.repo,
                description=self.description,
                private=False,
                auto_init=True,
            )
