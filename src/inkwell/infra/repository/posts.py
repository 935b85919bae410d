import asyncio
import logging

from inkwell.core import conventions
from inkwell.core.codec import decode_post, encode_post
from inkwell.core.exceptions import InkwellError, TransportFailure
from inkwell.core.types import Lookup, Post
from inkwell.core.utils import derive_identity, utc_now_iso
from inkwell.infra.github.client import GitHubClient
from inkwell.infra.repository.base import ContentsStore
from inkwell.infra.repository.lifecycle import RepositoryLifecycle

logger = logging.getLogger(__name__)


class PostRepository(ContentsStore):
    """Posts stored as ``blogs/{identity}.md`` in the backing repository."""

    def __init__(
        self,
        client: GitHubClient,
        lifecycle: RepositoryLifecycle,
        *,
        branch: str = "main",
        raw_host: str = "https://raw.githubusercontent.com",
    ) -> None:
        super().__init__(client, lifecycle)
        self.branch = branch
        self.raw_host = raw_host

    def raw_url(self, identity: str) -> str:
        return conventions.raw_url(self.raw_host, self.owner, self.repo, self.branch, identity)

    async def save(self, post: Post, identity: str | None = None) -> str:
        """Create or update a post and return its identity.

        The current revision is fetched right before the write and attached to it,
        so a concurrent writer in between makes GitHub reject the write.

        Raises:
            ConcurrentModification: If another writer changed the file first
            TransportFailure: For any other API failure

        """
        await self.lifecycle.ensure_collection_exists()

        identity = identity or derive_identity(post.title)
        path = conventions.post_path(identity)

        now = utc_now_iso()
        stamped = post.model_copy(update={"created_at": post.created_at or now, "updated_at": now})
        text = encode_post(stamped)

        current = await self.read_file(path)
        if current.is_failed:
            raise current.error
        sha = current.value.sha if current.is_found else None

        message = f"Update post: {post.title}" if sha else f"New post: {post.title}"
        await self.write_file(path, text, message, sha=sha)
        logger.info("Saved post %s", identity)
        return identity

    async def lookup(self, identity: str) -> Lookup[Post]:
        """Fetch and decode a post, keeping absent and failed apart."""
        current = await self.read_file(conventions.post_path(identity))
        if current.is_absent:
            return Lookup.absent()
        if current.is_failed:
            return Lookup.failed(current.error)
        stored = current.value
        try:
            post = decode_post(stored.text)
        except InkwellError as exc:
            return Lookup.failed(exc)
        return Lookup.found(post.model_copy(update={"identity": identity, "revision": stored.sha}))

    async def get(self, identity: str) -> Post | None:
        """Return the post, or None when it is missing or could not be read."""
        result = await self.lookup(identity)
        if result.is_failed:
            logger.warning("Could not read post %s: %s", identity, result.error)
        return result.unwrap_or_none()

    async def delete(self, identity: str) -> None:
        """Delete a post using its current revision.

        Raises:
            ConcurrentModification: If the post changed after its revision was read
            TransportFailure: If the post is missing or any call fails

        """
        path = conventions.post_path(identity)
        current = await self.read_file(path)
        if current.is_absent:
            raise TransportFailure(404, f"Post {identity} not found")
        if current.is_failed:
            raise current.error

        await self.client.delete_contents(
            self.owner, self.repo, path, current.value.sha, f"Delete post: {identity}"
        )
        logger.info("Deleted post %s", identity)

    async def list_all(self) -> list[Post]:
        """Fetch every post concurrently. Unreadable posts are left out."""
        try:
            await self.lifecycle.ensure_collection_exists()
            entries = await self.list_dir(conventions.POSTS_DIR)
        except TransportFailure as exc:
            logger.warning("Could not list posts: %s", exc)
            return []

        identities = [
            identity
            for entry in entries
            if (identity := conventions.identity_from_filename(entry.get("name", ""))) is not None
        ]
        results = await asyncio.gather(*(self.lookup(identity) for identity in identities))

        posts = []
        for identity, result in zip(identities, results, strict=True):
            if result.is_found:
                posts.append(result.value)
            else:
                logger.warning("Skipping post %s: %s", identity, result.error or "not found")
        return posts
