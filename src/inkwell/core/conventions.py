"""Storage layout of the backing repository.

These paths are a contract shared with every reader of the repository:

    blogs/{identity}.md                          one file per post
    analytics/links/{link_id}.json               one file per share link
    analytics/clicks/{link_id}-{token}.json      one file per click event
"""

POSTS_DIR = "blogs"
POST_EXTENSION = ".md"
LINKS_DIR = "analytics/links"
CLICKS_DIR = "analytics/clicks"
JSON_EXTENSION = ".json"


def post_path(identity: str) -> str:
    return f"{POSTS_DIR}/{identity}{POST_EXTENSION}"


def identity_from_filename(filename: str) -> str | None:
    """Return the post identity for a listing entry, or None if it is not a post file."""
    if not filename.endswith(POST_EXTENSION):
        return None
    return filename[: -len(POST_EXTENSION)]


def link_path(link_id: str) -> str:
    return f"{LINKS_DIR}/{link_id}{JSON_EXTENSION}"


def click_path(link_id: str, token: str) -> str:
    return f"{CLICKS_DIR}/{link_id}-{token}{JSON_EXTENSION}"


def is_click_of(filename: str, link_id: str) -> bool:
    """Match click files of one link without catching links that merely share a prefix."""
    return filename.startswith(f"{link_id}-") and filename.endswith(JSON_EXTENSION)


def raw_url(raw_host: str, owner: str, repo: str, branch: str, identity: str) -> str:
    """Public, credential-free URL of a post's serialized bytes."""
    return f"{raw_host.rstrip('/')}/{owner}/{repo}/{branch}/{post_path(identity)}"
