import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from inkwell.core.config import InkwellConfig
from inkwell.core.context import StoreContext, open_stores
from inkwell.core.exceptions import InkwellError
from inkwell.core.types import Post
from inkwell.features.analytics import classify_browser, classify_device, summarize_clicks
from inkwell.features.sharing import open_shared_post
from inkwell.logging_setup import configure_logging

app = typer.Typer(name="inkwell", help="Inkwell - posts stored in a GitHub repository")
posts_app = typer.Typer(name="posts", help="Create, read, list and delete posts.")
links_app = typer.Typer(name="links", help="Share links for posts.")
clicks_app = typer.Typer(name="clicks", help="Click analytics for share links.")
app.add_typer(posts_app)
app.add_typer(links_app)
app.add_typer(clicks_app)

console = Console()

T = TypeVar("T")


def _run(ctx: typer.Context, action: Callable[[StoreContext], Awaitable[T]]) -> T:
    """Open the stores for the configured owner, run one action and close them."""
    config: InkwellConfig = ctx.obj

    async def runner() -> T:
        async with await open_stores(config) as stores:
            return await action(stores)

    try:
        return asyncio.run(runner())
    except InkwellError as exc:
        console.print(f"[bold red]Error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    root: Path = typer.Option(None, "--root", help="Directory containing .inkwell.toml."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level (default INKWELL_LOG_LEVEL or INFO)."),
):
    """
    Inkwell keeps posts, share links and click analytics in one GitHub repository.
    """
    configure_logging(log_level)
    ctx.obj = InkwellConfig.load(root or Path.cwd())


@posts_app.command("save")
def posts_save(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", help="Post title."),
    body: str = typer.Option(None, "--body", help="Markdown body."),
    body_file: Path = typer.Option(None, "--body-file", exists=True, dir_okay=False, help="Read the body from a file."),
    tags: list[str] = typer.Option([], "--tag", help="Tag, repeatable."),
    identity: str = typer.Option(None, "--id", help="Existing post identity to update."),
):
    """
    Create a post, or update it when --id is given.
    """
    if not title.strip():
        console.print("[bold red]Error:[/] a title is required (--title)")
        raise typer.Exit(code=1)
    text = body_file.read_text(encoding="utf-8") if body_file else body
    if not text or not text.strip():
        console.print("[bold red]Error:[/] a body is required (--body or --body-file)")
        raise typer.Exit(code=1)

    async def action(stores: StoreContext) -> str:
        created_at = None
        if identity:
            existing = await stores.posts.get(identity)
            created_at = existing.created_at if existing else None
        post = Post(title=title, body=text, tags=tags, created_at=created_at)
        return await stores.posts.save(post, identity)

    saved = _run(ctx, action)
    console.print(f"✅ Saved post [bold cyan]{saved}[/]")


@posts_app.command("get")
def posts_get(ctx: typer.Context, identity: str = typer.Argument(..., help="Post identity.")):
    """
    Show one post.
    """
    post = _run(ctx, lambda stores: stores.posts.get(identity))
    if post is None:
        console.print(f"[bold red]Post not found:[/] {identity}")
        raise typer.Exit(code=1)

    console.print(f"[bold]{escape(post.title)}[/bold]")
    if post.tags:
        console.print("Tags: " + ", ".join(post.tags), markup=False)
    console.print(f"Created: {post.created_at}  Updated: {post.updated_at}", markup=False)
    console.print("-" * 20)
    console.print(post.body, markup=False)


@posts_app.command("list")
def posts_list(ctx: typer.Context):
    """
    List every post, newest first.
    """
    posts = _run(ctx, lambda stores: stores.posts.list_all())
    posts.sort(key=lambda post: post.created_at or "", reverse=True)

    table = Table(title=f"Posts ({len(posts)})")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Tags")
    table.add_column("Created")
    for post in posts:
        table.add_row(post.identity, post.title, ", ".join(post.tags), post.created_at or "")
    console.print(table)


@posts_app.command("delete")
def posts_delete(ctx: typer.Context, identity: str = typer.Argument(..., help="Post identity.")):
    """
    Delete a post. Its share links and clicks are kept.
    """
    _run(ctx, lambda stores: stores.posts.delete(identity))
    console.print(f"🗑️  Deleted post [bold cyan]{identity}[/]")


@links_app.command("create")
def links_create(
    ctx: typer.Context,
    identity: str = typer.Argument(..., help="Identity of the post to share."),
    expires_at: str = typer.Option(None, "--expires-at", help="ISO 8601 expiry, advisory."),
):
    """
    Create a share link for a post.
    """
    url = _run(ctx, lambda stores: stores.links.create(identity, expires_at))
    console.print(url, markup=False)


@links_app.command("resolve")
def links_resolve(ctx: typer.Context, link_id: str = typer.Argument(..., help="Share link id.")):
    """
    Show a share link record.
    """
    link = _run(ctx, lambda stores: stores.links.resolve(link_id))
    if link is None:
        console.print(f"[bold red]Link not found:[/] {link_id}")
        raise typer.Exit(code=1)

    console.print(f"Post: {link.document_ref}", markup=False)
    console.print(f"Raw URL: {link.resource_url}", markup=False)
    console.print(f"Created: {link.created_at}", markup=False)
    if link.expires_at:
        state = "expired" if link.is_expired() else "active"
        console.print(f"Expires: {link.expires_at} ({state})", markup=False)


@clicks_app.command("record")
def clicks_record(
    ctx: typer.Context,
    link_id: str = typer.Argument(..., help="Share link id."),
    address: str = typer.Option(..., "--ip", help="Visitor address."),
    client_signature: str = typer.Option("unknown", "--user-agent", help="Visitor user agent."),
):
    """
    Record a click by hand.
    """
    event = _run(ctx, lambda stores: stores.analytics.record_click(link_id, address, client_signature))
    if event is None:
        console.print("⚠️  Click could not be recorded")
        raise typer.Exit(code=1)
    console.print(f"✅ Click recorded at {event.timestamp}")


@clicks_app.command("list")
def clicks_list(ctx: typer.Context, link_id: str = typer.Argument(..., help="Share link id.")):
    """
    List the clicks of a share link.
    """
    events = _run(ctx, lambda stores: stores.analytics.list_clicks(link_id))
    events.sort(key=lambda event: event.timestamp, reverse=True)

    table = Table(title=f"Clicks for {link_id} ({len(events)})")
    table.add_column("When")
    table.add_column("Browser")
    table.add_column("Device")
    table.add_column("Address")
    table.add_column("Location")
    for event in events:
        table.add_row(
            event.timestamp,
            classify_browser(event.client_signature),
            classify_device(event.client_signature),
            event.address,
            event.location or "",
        )
    console.print(table)


@clicks_app.command("report")
def clicks_report(ctx: typer.Context, link_id: str = typer.Argument(..., help="Share link id.")):
    """
    Summarize visitors, browsers and devices of a share link.
    """
    events = _run(ctx, lambda stores: stores.analytics.list_clicks(link_id))
    summary = summarize_clicks(events)

    console.print(f"Total clicks: {summary.total_clicks}")
    console.print(f"Unique visitors: {summary.unique_addresses} ({summary.unique_ratio:.0%})")
    for label, counts in (("Browsers", summary.browsers), ("Devices", summary.devices)):
        table = Table(title=label)
        table.add_column(label[:-1])
        table.add_column("Clicks", justify="right")
        for name, count in counts.items():
            table.add_row(name, str(count))
        console.print(table)


@app.command()
def read(
    ctx: typer.Context,
    link_id: str = typer.Argument(..., help="Share link id."),
    address: str = typer.Option("127.0.0.1", "--ip", help="Visitor address recorded with the click."),
    client_signature: str = typer.Option("inkwell-cli", "--user-agent", help="Visitor user agent."),
):
    """
    Read a shared post the way a visitor would.
    """

    async def action(stores: StoreContext):
        return await open_shared_post(
            link_id,
            links=stores.links,
            analytics=stores.analytics,
            client=stores.client,
            address=address,
            client_signature=client_signature,
        )

    shared = _run(ctx, action)
    if shared is None:
        console.print(f"[bold red]Link not found:[/] {link_id}")
        raise typer.Exit(code=1)
    if shared.expired:
        console.print(f"[bold yellow]This link expired on {shared.link.expires_at}[/]")
        raise typer.Exit(code=2)
    if shared.post is None:
        console.print("[bold red]The shared post could not be loaded[/]")
        raise typer.Exit(code=1)

    console.print(f"[bold]{escape(shared.post.title)}[/bold]")
    console.print(shared.post.body, markup=False)
