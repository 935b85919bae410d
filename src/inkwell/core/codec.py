"""Front-matter serialization of posts and base64 transport encoding.

A stored post looks like::

    ---
    title: "Hello World"
    tags: ["a", "b"]
    createdAt: "2024-03-15T09:30:00.000Z"
    updatedAt: "2024-03-15T09:30:00.000Z"
    ---

    Body in markdown.

Title, tags and timestamps are emitted as YAML double-quoted scalars. The emitter
escapes quotes, backslashes and every non-printable character, so any string
survives a round trip.
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime
from typing import Any

import yaml
from frontmatter.default_handlers import YAMLHandler

from inkwell.core.exceptions import MalformedDocument
from inkwell.core.types import Post
from inkwell.core.utils import format_iso_utc, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "untitled"

_handler = YAMLHandler()


def _quote(value: str) -> str:
    dumped = yaml.safe_dump(value, default_style='"', allow_unicode=True, width=float("inf"))
    # A bare scalar document may be closed with an explicit end marker.
    return dumped.rstrip("\n").removesuffix("\n...").rstrip("\n")


def encode_post(post: Post) -> str:
    """Render a post as front matter followed by its body verbatim.

    Missing timestamps are filled with the current time.
    """
    now = utc_now_iso()
    tags = ", ".join(_quote(tag) for tag in post.tags)
    lines = [
        "---",
        f"title: {_quote(post.title)}",
        f"tags: [{tags}]",
        f"createdAt: {_quote(post.created_at or now)}",
        f"updatedAt: {_quote(post.updated_at or now)}",
        "---",
        "",
    ]
    return "\n".join(lines) + "\n" + post.body


def _load_metadata(header: str) -> dict[str, Any]:
    try:
        data = _handler.load(header)
    except yaml.YAMLError as exc:
        logger.warning("Unreadable front matter, falling back to defaults: %s", exc)
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def _as_timestamp(value: Any) -> str | None:
    if isinstance(value, datetime):
        return format_iso_utc(value)
    if isinstance(value, str) and value:
        return value
    return None


def _as_tags(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(tag) for tag in value if tag is not None]
    if isinstance(value, str) and value.strip():
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return []


def decode_post(text: str) -> Post:
    """Parse serialized post text.

    Raises:
        MalformedDocument: If the two ``---`` delimiter lines are missing

    """
    if not _handler.detect(text):
        msg = "Post text does not start with a front-matter delimiter"
        raise MalformedDocument(msg)
    try:
        header, body = _handler.split(text)
    except ValueError as exc:
        msg = "Post text is missing its closing front-matter delimiter"
        raise MalformedDocument(msg) from exc

    metadata = _load_metadata(header)
    title = metadata.get("title")
    if not isinstance(title, str) or not title.strip():
        title = DEFAULT_TITLE

    return Post.model_construct(
        identity=None,
        title=title,
        body=body.strip(),
        tags=_as_tags(metadata.get("tags")),
        created_at=_as_timestamp(metadata.get("createdAt")),
        updated_at=_as_timestamp(metadata.get("updatedAt")),
        revision=None,
    )


def parse_post_from_raw(raw_content: str) -> Post:
    """Decode a post fetched anonymously from its raw URL."""
    return decode_post(raw_content)


def encode_content(text: str) -> str:
    """Encode text as base64 for the contents API."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(payload: str) -> str:
    """Decode a base64 payload from the contents API.

    GitHub wraps the encoded content every 60 characters, so whitespace is ignored.
    """
    try:
        return base64.b64decode("".join(payload.split())).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        msg = "Stored content is not valid base64 UTF-8 text"
        raise MalformedDocument(msg) from exc
