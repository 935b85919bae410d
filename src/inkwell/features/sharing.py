"""Anonymous reading of a shared post."""

import logging
from dataclasses import dataclass
from datetime import datetime

from inkwell.core.codec import parse_post_from_raw
from inkwell.core.exceptions import InkwellError
from inkwell.core.types import Post, ShareLink
from inkwell.infra.github.client import GitHubClient
from inkwell.infra.repository.analytics import AnalyticsStore
from inkwell.infra.repository.links import ShareLinkStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SharedPost:
    link: ShareLink
    post: Post | None
    expired: bool


async def open_shared_post(
    link_id: str,
    *,
    links: ShareLinkStore,
    analytics: AnalyticsStore,
    client: GitHubClient,
    address: str,
    client_signature: str,
    now: datetime | None = None,
) -> SharedPost | None:
    """Resolve a share link, count the visit and fetch the post from its raw URL.

    Returns None for an unknown link. Expired links are reported, not read, and
    their visits are not counted.
    """
    link = await links.resolve(link_id)
    if link is None:
        return None
    if link.is_expired(now):
        logger.info("Share link %s expired at %s", link_id, link.expires_at)
        return SharedPost(link=link, post=None, expired=True)

    await analytics.record_click(link_id, address, client_signature)

    try:
        raw = await client.fetch_raw(link.resource_url)
        post = parse_post_from_raw(raw)
    except InkwellError as exc:
        logger.warning("Could not read shared post %s: %s", link.document_ref, exc)
        return SharedPost(link=link, post=None, expired=False)
    return SharedPost(link=link, post=post.model_copy(update={"identity": link.document_ref}), expired=False)
