"""CLI interface for notemaster."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from notemaster.article import Article, ArticleStatus, ContentBackend, GenerationProgress
from notemaster.config import NoteMasterConfig, load_config, merge_cli_overrides
from notemaster.content import ArticleStore
from notemaster.pipeline import build_request, run_batch
from notemaster.publishing import (
    NOTE_NEW_POST_URL,
    image_artifacts,
    mark_published,
    render_markdown,
    thumbnail_artifact,
    write_artifacts,
)
from notemaster.shared.errors import BackendError, BatchAbortedError, ValidationError

app = typer.Typer(
    name="notemaster",
    help="Generate long-form illustrated articles in bulk and prepare them for note.com.",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from notemaster import __version__

        console.print(f"notemaster {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .notemaster.toml file."),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Directory holding the article store."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """notemaster - bulk article generation with Gemini."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config(config_path)
    config = merge_cli_overrides(
        config, output_directory=str(output) if output is not None else None
    )
    ctx.obj = config


def _config(ctx: typer.Context) -> NoteMasterConfig:
    return ctx.obj if isinstance(ctx.obj, NoteMasterConfig) else load_config()


def _store(ctx: typer.Context) -> ArticleStore:
    return ArticleStore(_config(ctx).output_dir)


def _require_article(store: ArticleStore, article_id: str) -> Article:
    article = store.get(article_id)
    if article is None:
        console.print(f"[red]Error:[/red] No article with id {article_id!r}")
        raise typer.Exit(1)
    return article


def _read_lines(path: Path) -> list[str]:
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def _parse_start(value: str | None) -> datetime:
    if value is None:
        return datetime.now().replace(second=0, microsecond=0)
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"invalid start time {value!r} (expected ISO format)") from exc


def _fmt(ts: datetime | None) -> str:
    return ts.strftime("%Y-%m-%d %H:%M") if ts is not None else "-"


@app.command()
def generate(
    ctx: typer.Context,
    topics: Annotated[
        Optional[list[str]],
        typer.Argument(help="Topics to write about, one article each."),
    ] = None,
    topics_file: Annotated[
        Optional[Path],
        typer.Option("--topics-file", "-t", help="File with one topic per line.", exists=True),
    ] = None,
    ref: Annotated[
        Optional[list[str]],
        typer.Option("--ref", "-r", help="Reference URL or fact shared by every article."),
    ] = None,
    start: Annotated[
        Optional[str],
        typer.Option("--start", help="Publish time of the first article (ISO, e.g. 2024-03-01T09:00)."),
    ] = None,
    interval: Annotated[
        Optional[int],
        typer.Option("--interval", help="Days between scheduled articles."),
    ] = None,
    length: Annotated[
        Optional[int],
        typer.Option("--length", "-l", help="Target length in characters (2000-10000)."),
    ] = None,
    concurrency: Annotated[
        Optional[int],
        typer.Option("--concurrency", help="Sections generated at once per article."),
    ] = None,
) -> None:
    """Generate, schedule, and store one article per topic."""
    try:
        config = merge_cli_overrides(
            _config(ctx),
            interval_days=interval,
            target_length=length,
            section_concurrency=concurrency,
        )
    except PydanticValidationError as exc:
        console.print(f"[red]Error:[/red] invalid option: {exc.errors()[0]['msg']}")
        raise typer.Exit(1) from exc
    all_topics = list(topics or [])
    if topics_file is not None:
        all_topics.extend(_read_lines(topics_file))

    try:
        request = build_request(
            all_topics,
            start_at=_parse_start(start),
            references=ref or [],
            interval_days=config.generation.interval_days,
            target_length=config.generation.target_length,
        )
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    backend_config = config.to_backend_config()
    if not backend_config.is_configured:
        console.print("[red]Error:[/red] Gemini API key not configured (set GEMINI_API_KEY).")
        raise typer.Exit(1)

    backend = ContentBackend(backend_config)
    store = ArticleStore(config.output_dir)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Starting...", total=100)

        def _on_progress(p: GenerationProgress) -> None:
            progress.update(task, description=p.message, completed=p.percent)

        def _on_complete(article: Article) -> None:
            progress.console.print(
                f"[green]Saved[/green] {article.title} "
                f"[dim]({article.id}, scheduled {_fmt(article.scheduled_at)})[/dim]"
            )

        try:
            articles = asyncio.run(
                run_batch(
                    request,
                    backend=backend,
                    store=store,
                    on_progress=_on_progress,
                    on_article_complete=_on_complete,
                    concurrency=config.generation.section_concurrency,
                )
            )
        except BatchAbortedError as exc:
            progress.stop()
            console.print(f"[red]Error:[/red] {exc}")
            console.print(
                f"{len(exc.completed)} article(s) were saved before the failure. "
                f"Re-run with the remaining {len(request.topics) - exc.index} topic(s) to continue."
            )
            raise typer.Exit(1) from exc

    console.print(f"Generated {len(articles)} article(s) into {store.path}")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    status: Annotated[
        Optional[ArticleStatus],
        typer.Option("--status", "-s", help="Only show articles with this status."),
    ] = None,
) -> None:
    """List stored articles, most recent first."""
    articles = _store(ctx).list(status=status)
    if not articles:
        console.print("No articles yet.")
        return

    table = Table(title=f"Library ({len(articles)})")
    table.add_column("ID", style="dim")
    table.add_column("Status")
    table.add_column("Title")
    table.add_column("Created")
    table.add_column("Scheduled")
    for article in articles:
        table.add_row(
            article.id,
            article.status.value,
            article.title,
            _fmt(article.created_at),
            _fmt(article.scheduled_at),
        )
    console.print(table)


@app.command()
def schedule(ctx: typer.Context) -> None:
    """Show scheduled articles in publish order."""
    articles = _store(ctx).scheduled()
    if not articles:
        console.print("No scheduled articles.")
        return

    table = Table(title="Publishing schedule")
    table.add_column("When")
    table.add_column("Title")
    table.add_column("Length", justify="right")
    table.add_column("ID", style="dim")
    for article in articles:
        table.add_row(
            _fmt(article.scheduled_at),
            article.title,
            f"{int(article.target_length)} chars",
            article.id,
        )
    console.print(table)


@app.command()
def show(
    ctx: typer.Context,
    article_id: Annotated[str, typer.Argument(help="Article id.")],
) -> None:
    """Print an article as markdown."""
    article = _require_article(_store(ctx), article_id)
    console.print(render_markdown(article), markup=False, highlight=False)


@app.command()
def export(
    ctx: typer.Context,
    article_id: Annotated[str, typer.Argument(help="Article id.")],
    directory: Annotated[
        Optional[Path],
        typer.Option("--dir", "-d", help="Export directory. Defaults to <output>/export/<id>."),
    ] = None,
    embed_images: Annotated[
        bool,
        typer.Option("--embed-images/--no-embed-images", help="Inline images as data URIs."),
    ] = False,
) -> None:
    """Write markdown, thumbnail and images for posting by hand."""
    config = _config(ctx)
    article = _require_article(ArticleStore(config.output_dir), article_id)
    target = directory or config.output_dir / "export" / article.id

    target.mkdir(parents=True, exist_ok=True)
    markdown_path = target / f"{article.id}.md"
    markdown_path.write_text(render_markdown(article, embed_images=embed_images), encoding="utf-8")

    artifacts = image_artifacts(article)
    thumbnail = thumbnail_artifact(article)
    if thumbnail is not None:
        artifacts.insert(0, thumbnail)
    written = write_artifacts(artifacts, target)

    console.print(f"Wrote {markdown_path}")
    for path in written:
        console.print(f"Wrote {path}")
    console.print(f"Paste the markdown into {NOTE_NEW_POST_URL}")


@app.command()
def publish(
    ctx: typer.Context,
    article_id: Annotated[str, typer.Argument(help="Article id.")],
) -> None:
    """Mark an article as published."""
    try:
        article = mark_published(_store(ctx), article_id)
    except KeyError as exc:
        console.print(f"[red]Error:[/red] No article with id {article_id!r}")
        raise typer.Exit(1) from exc
    console.print(f"Marked [bold]{article.title}[/bold] as published")


@app.command()
def translate(
    ctx: typer.Context,
    article_id: Annotated[str, typer.Argument(help="Article id.")],
    output_file: Annotated[
        Optional[Path],
        typer.Option("--to", help="Write the translation here instead of stdout."),
    ] = None,
) -> None:
    """Translate an article into English."""
    config = _config(ctx)
    article = _require_article(ArticleStore(config.output_dir), article_id)
    backend = ContentBackend(config.to_backend_config())
    try:
        translated = asyncio.run(backend.translate(render_markdown(article)))
    except BackendError as exc:
        console.print(f"[red]Error:[/red] {exc.message}")
        raise typer.Exit(1) from exc

    if output_file is not None:
        output_file.write_text(translated, encoding="utf-8")
        console.print(f"Wrote {output_file}")
    else:
        console.print(translated, markup=False, highlight=False)


@app.command()
def delete(
    ctx: typer.Context,
    article_id: Annotated[str, typer.Argument(help="Article id.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation.")] = False,
) -> None:
    """Delete an article from the library."""
    store = _store(ctx)
    article = _require_article(store, article_id)
    if not yes and not typer.confirm(f"Delete {article.title!r} permanently?"):
        raise typer.Exit()
    store.delete(article_id)
    console.print(f"Deleted {article_id}")


if __name__ == "__main__":
    app()
