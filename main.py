#!/usr/bin/env python3
"""
NewsDesk - RSS/Atom Feed Reader
===============================

Main application entry point with CLI interface for managing feeds and
browsing the article archive.

Usage:
    python main.py --help                        # Show all commands
    python main.py check-config                  # Validate configuration
    python main.py init-data                     # Create empty data documents
    python main.py add-feed URL                  # Register a feed
    python main.py list-articles -c Technology   # Browse articles by category
    python main.py refresh                       # Refresh every feed now
"""

import sys
import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from newsdesk.config.settings import get_settings
from newsdesk.services.reader_service import ReaderService
from newsdesk.utils.logging import configure_logging_from_settings
from newsdesk.utils.exceptions import NewsDeskError, get_user_friendly_message

console = Console()
logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """NewsDesk - RSS/Atom feed reader with automatic categorization."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        # Show help if no subcommand provided
        click.echo(ctx.get_help())


def _get_service(ctx) -> ReaderService:
    """Configure logging and build the reader service."""
    settings = get_settings()
    configure_logging_from_settings(settings, debug=ctx.obj.get('debug', False))
    return ReaderService(settings)


def _fail(message: str, error: Optional[Exception] = None) -> None:
    if error is not None:
        message = f"{message}: {get_user_friendly_message(error)}"
    console.print(f"[bold red]❌ {message}[/bold red]")
    sys.exit(1)


def _truncate(text: str, width: int) -> str:
    return text[:width - 3] + "..." if len(text) > width else text


@cli.command()
def check_config():
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking NewsDesk Configuration[/bold blue]")

    try:
        settings = get_settings()

        table = Table(title="Configuration Status")
        table.add_column("Component", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Details")

        checks = [
            ("Storage", _check_storage_config),
            ("Logging", _check_logging_config),
            ("Processing", _check_processing_config),
            ("Scheduler", _check_scheduler_config),
        ]

        all_passed = True
        for name, check_func in checks:
            status, details = check_func(settings)
            table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
            if not status:
                all_passed = False

        console.print(table)

        if all_passed:
            console.print("[bold green]✅ All configuration checks passed![/bold green]")
        else:
            _fail("Configuration validation failed")

    except NewsDeskError as e:
        _fail("Configuration error", e)


@cli.command()
@click.pass_context
def init_data(ctx):
    """Create the data directory with empty feed and article documents."""
    console.print("[bold blue]🗄️ Initializing NewsDesk Data Directory[/bold blue]")

    try:
        created = _get_service(ctx).init_storage()
    except NewsDeskError as e:
        _fail("Initialization error", e)

    for path, was_created in created.items():
        status = "created" if was_created else "already present"
        console.print(f"  • {path}: {status}")
    console.print("[bold green]✅ Data directory ready[/bold green]")


@cli.command()
@click.pass_context
def list_feeds(ctx):
    """Show all registered feeds."""
    try:
        feeds = _get_service(ctx).list_feeds()
    except NewsDeskError as e:
        _fail("Error listing feeds", e)

    if not feeds:
        console.print("[yellow]⚠️ No feeds registered[/yellow]")
        return

    feeds_table = Table(title=f"Feeds ({len(feeds)})")
    feeds_table.add_column("ID", style="dim")
    feeds_table.add_column("Title", style="cyan")
    feeds_table.add_column("Category", style="yellow")
    feeds_table.add_column("URL", style="blue")
    feeds_table.add_column("Added")

    for feed in feeds:
        feeds_table.add_row(
            feed.id,
            _truncate(feed.title, 30),
            feed.category,
            _truncate(feed.url, 50),
            feed.added_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(feeds_table)


@cli.command()
@click.argument('url')
@click.option('--title', '-t', help='Display title (default: the feed title)')
@click.option('--category', '-c', help='Feed category (default: General)')
@click.pass_context
def add_feed(ctx, url, title, category):
    """Register a feed and ingest its articles."""
    console.print(f"[bold blue]📡 Adding feed: {url}[/bold blue]")

    try:
        service = _get_service(ctx)
        feed = asyncio.run(service.add_feed(url, title=title, category=category))
    except NewsDeskError as e:
        _fail("Feed rejected", e)

    console.print(f"[bold green]✅ Added '{feed.title}' ({feed.id}) in category {feed.category}[/bold green]")


@cli.command()
@click.argument('feed_id')
@click.pass_context
def remove_feed(ctx, feed_id):
    """Remove a feed and all of its articles."""
    try:
        removed = _get_service(ctx).delete_feed(feed_id)
    except NewsDeskError as e:
        _fail("Error removing feed", e)

    console.print(f"[bold green]✅ Removed feed {feed_id} and {removed} articles[/bold green]")


@cli.command()
@click.option('--category', '-c', default='all', help='Category filter (default: all)')
@click.option('--limit', '-n', default=20, help='Maximum number of articles to show')
@click.pass_context
def list_articles(ctx, category, limit):
    """Show archived articles, newest first."""
    try:
        articles = _get_service(ctx).list_articles(category)
    except NewsDeskError as e:
        _fail("Error listing articles", e)

    if not articles:
        console.print(f"[yellow]⚠️ No articles in category '{category}'[/yellow]")
        return

    table = Table(title=f"Articles: {category} ({len(articles)})")
    table.add_column("Published", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Feed", style="blue")
    table.add_column("Categories", style="yellow")
    table.add_column("ID", style="dim")

    for article in articles[:limit]:
        labels = article.categories + [f"*{label}" for label in article.manual_categories]
        table.add_row(
            article.pub_date or "No date",
            _truncate(article.title or "Untitled", 50),
            _truncate(article.feed_title, 20),
            ", ".join(labels),
            article.id,
        )

    console.print(table)
    if len(articles) > limit:
        console.print(f"[dim]Showing {limit} of {len(articles)} articles[/dim]")


@cli.command()
@click.pass_context
def categories(ctx):
    """Show every category with its article count."""
    try:
        counts = _get_service(ctx).category_counts()
    except NewsDeskError as e:
        _fail("Error listing categories", e)

    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Articles", style="green", justify="right")

    for category, count in counts.items():
        table.add_row(category, str(count))

    console.print(table)


@cli.command()
@click.argument('article_id')
@click.argument('labels', nargs=-1)
@click.pass_context
def set_categories(ctx, article_id, labels):
    """Set the manual categories of an article (no labels clears them)."""
    try:
        article = _get_service(ctx).set_manual_categories(article_id, list(labels))
    except NewsDeskError as e:
        _fail("Error setting categories", e)

    console.print(
        f"[bold green]✅ Manual categories for '{_truncate(article.title, 50)}': "
        f"{', '.join(article.manual_categories) or 'none'}[/bold green]"
    )


@cli.command()
@click.pass_context
def refresh(ctx):
    """Refresh every registered feed now."""
    console.print("[bold blue]🔄 Refreshing all feeds[/bold blue]")

    try:
        result = asyncio.run(_get_service(ctx).refresh_now())
    except NewsDeskError as e:
        _fail("Refresh error", e)

    results_table = Table(title="Refresh Results")
    results_table.add_column("Metric", style="cyan")
    results_table.add_column("Value", style="green")

    results_table.add_row("Feeds", f"{result.feeds_succeeded}/{result.feeds_total} successful")
    results_table.add_row("Articles fetched", str(result.articles_fetched))
    results_table.add_row("New articles", str(result.merge_stats.added))
    results_table.add_row("Updated articles", str(result.merge_stats.updated))
    results_table.add_row("Evicted by retention", str(result.merge_stats.evicted))
    results_table.add_row("Archive size", str(result.merge_stats.total))
    results_table.add_row("Time", f"{result.processing_time_seconds:.2f}s")

    console.print(results_table)

    for feed_url, error in result.errors:
        console.print(f"  ❌ {_truncate(feed_url, 60)}: {error}")


@cli.command()
@click.argument('url')
@click.pass_context
def fetch_feed(ctx, url):
    """Fetch and parse a single feed without saving anything."""
    console.print(f"[bold blue]📡 Fetching RSS Feed: {url}[/bold blue]")

    result = asyncio.run(_get_service(ctx).preview_feed(url))

    if not result.success:
        _fail(result.error_message or "Feed fetch failed")

    console.print("[bold green]✅ Feed fetched successfully![/bold green]")

    info_table = Table(title="Feed Information")
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")

    info_table.add_row("Title", result.title or "Unknown")
    info_table.add_row("Articles Found", str(result.article_count))
    info_table.add_row("Feed URL", result.url)

    console.print(info_table)

    if result.sample_articles:
        console.print(f"\n[bold blue]📰 Sample Articles (showing first {len(result.sample_articles)}):[/bold blue]")
        for i, article in enumerate(result.sample_articles, 1):
            console.print(f"\n{i}. [bold]{article['title']}[/bold]")
            console.print(f"   🔗 Link: {article['link']}")
            console.print(f"   🏷️ Categories: {', '.join(article['categories'])}")
            if article['image']:
                console.print(f"   🖼️ Image: {article['image']}")


# Helper functions for configuration checks
def _check_storage_config(settings) -> tuple[bool, str]:
    """Check storage configuration."""
    try:
        Path(settings.storage.data_dir).mkdir(parents=True, exist_ok=True)
        return True, f"Feeds: {settings.storage.feeds_path}, Articles: {settings.storage.articles_path}"
    except OSError as e:
        return False, str(e)


def _check_logging_config(settings) -> tuple[bool, str]:
    """Check logging configuration."""
    try:
        if settings.logging.file_path:
            Path(settings.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, Console: {settings.logging.console_logging}"
    except OSError as e:
        return False, str(e)


def _check_processing_config(settings) -> tuple[bool, str]:
    """Check processing configuration."""
    return True, (
        f"Archive cap: {settings.processing.max_archive_size}, "
        f"Parallel feeds: {settings.processing.parallel_feeds}, "
        f"Timeout: {settings.limits.request_timeout}s"
    )


def _check_scheduler_config(settings) -> tuple[bool, str]:
    """Check scheduler configuration."""
    return True, (
        f"Every {settings.scheduler.refresh_interval_minutes} min, "
        f"run on startup: {settings.scheduler.run_on_startup}"
    )


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 NewsDesk interrupted by user[/yellow]")
        sys.exit(130)
