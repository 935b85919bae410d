"""Store wiring for one owner and credential.

Owner and token are passed in explicitly; nothing is read from global state.
"""

from dataclasses import dataclass

from inkwell.core.config import InkwellConfig
from inkwell.core.exceptions import ConfigurationError
from inkwell.infra.github.client import GitHubClient
from inkwell.infra.repository.analytics import AnalyticsStore
from inkwell.infra.repository.lifecycle import RepositoryLifecycle
from inkwell.infra.repository.links import ShareLinkStore
from inkwell.infra.repository.posts import PostRepository


@dataclass(frozen=True)
class StoreContext:
    client: GitHubClient
    posts: PostRepository
    links: ShareLinkStore
    analytics: AnalyticsStore

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "StoreContext":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def build_stores(client: GitHubClient, owner: str, config: InkwellConfig) -> StoreContext:
    gh = config.github
    lifecycle = RepositoryLifecycle(client, owner, gh.repository, description=gh.description)
    return StoreContext(
        client=client,
        posts=PostRepository(client, lifecycle, branch=gh.branch, raw_host=gh.raw_url),
        links=ShareLinkStore(
            client, lifecycle, app_url=config.sharing.app_url, branch=gh.branch, raw_host=gh.raw_url
        ),
        analytics=AnalyticsStore(client, lifecycle),
    )


async def open_stores(config: InkwellConfig) -> StoreContext:
    """Build a client from config, discovering the owner login from the token when unset.

    Raises:
        ConfigurationError: If no token is configured

    """
    gh = config.github
    if gh.token is None:
        msg = "A GitHub token is required (set INKWELL_GITHUB__TOKEN or github.token in .inkwell.toml)"
        raise ConfigurationError(msg)

    client = GitHubClient(gh.token.get_secret_value(), base_url=gh.api_url, timeout=gh.timeout)
    owner = gh.owner
    if not owner:
        try:
            user = await client.get_authenticated_user()
        except BaseException:
            await client.aclose()
            raise
        owner = user["login"]
    return build_stores(client, owner, config)
