"""Command-line interface for gitplay."""

import asyncio
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import Config, load_config
from .errors import AuthenticationFailure, ForgeError, RateLimitOrPermission
from .feed import FeedLoader
from .forges.github import GitHubClient
from .models import FeedSnapshot
from .report import DEFAULT_FEED_LIMIT, STREAK_GOAL_DAYS, generate_markdown_report
from .summary import describe_event, rank_by_streak

app = typer.Typer(help="Personalized activity feed of the GitHub accounts you follow")
console = Console()

ConfigOption = typer.Option(
    "config.yaml",
    "--config",
    "-c",
    help="Path to configuration file (optional; defaults apply when missing)",
    dir_okay=False,
)
TokenOption = typer.Option(
    None,
    "--token",
    "-t",
    help="GitHub access token (overrides config file and GITHUB_TOKEN)",
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


def main():
    """Entry point for the CLI application."""
    app()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _resolve_config(config_file: Path, token: str | None) -> Config:
    """Load the config file if present and apply the token override."""
    if config_file.exists():
        try:
            config = load_config(config_file)
        except Exception as e:
            console.print(f"[red]Error loading configuration:[/red] {e}")
            raise typer.Exit(1)
    else:
        config = Config()

    config.token = token or config.token or os.environ.get("GITHUB_TOKEN")
    if not config.token:
        console.print(
            "[red]No access token configured.[/red] Set GITHUB_TOKEN, "
            "pass --token, or add 'token' to the config file."
        )
        raise typer.Exit(1)
    return config


def _make_client(config: Config) -> GitHubClient:
    return GitHubClient(
        token=config.token,
        endpoint=config.endpoint,
        timeout=config.timeout,
        max_pages=config.max_pages,
        page_size=config.page_size,
    )


async def _load_snapshot(config: Config) -> FeedSnapshot | None:
    async with _make_client(config) as client:
        loader = FeedLoader(
            client, window_days=config.window_days, concurrency=config.concurrency
        )
        return await loader.load()


def _fetch(config: Config) -> FeedSnapshot:
    """Run one feed load, turning forge errors into a user-visible exit."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Fetching activity of followed accounts...", total=None)
        try:
            snapshot = asyncio.run(_load_snapshot(config))
        except AuthenticationFailure as e:
            console.print(f"[red]Authentication failed:[/red] {e}")
            console.print("Sign in again to obtain a fresh token, then retry.")
            raise typer.Exit(1)
        except RateLimitOrPermission as e:
            console.print(f"[red]GitHub refused the request:[/red] {e}")
            if e.rate_limit_remaining == 0 and e.rate_limit_reset:
                console.print(f"Rate limit resets at epoch {e.rate_limit_reset}.")
            raise typer.Exit(1)
        except ForgeError as e:
            console.print(f"[red]Error fetching feed:[/red] {e}")
            raise typer.Exit(1)

    if snapshot is None:
        console.print("[yellow]Feed load was superseded; nothing to show.[/yellow]")
        raise typer.Exit(1)

    return snapshot


def _print_feed(snapshot: FeedSnapshot, limit: int) -> None:
    console.print(f"[bold blue]Activity Feed[/bold blue] (following {len(snapshot.following)})\n")
    if not snapshot.events:
        console.print("No recent activity.")
        return

    for event in snapshot.events[:limit]:
        console.print(
            f"[dim]{event.timestamp.strftime('%b %d %H:%M')}[/dim] "
            f"[bold]{event.actor.login}[/bold] {describe_event(event)} "
            f"[cyan]{event.target_repo}[/cyan]"
        )
        commits = event.commits
        for commit in commits[:3]:
            console.print(f"    [dim]{commit.sha[:7]}[/dim] {commit.title}")
        if len(commits) > 3:
            console.print(f"    [dim]+{len(commits) - 3} more commits[/dim]")

    remaining = len(snapshot.events) - limit
    if remaining > 0:
        console.print(f"\n[dim]{remaining} more events; use --limit to see more[/dim]")


def _print_streaks(snapshot: FeedSnapshot) -> None:
    table = Table(title="Contribution Streaks")
    table.add_column("User", style="bold")
    table.add_column("Streak", justify="right")
    table.add_column("Progress")
    table.add_column("Contributions", justify="right")

    for record in rank_by_streak(snapshot.contributions):
        streak = record.current_streak
        filled = min(streak, STREAK_GOAL_DAYS)
        table.add_row(
            record.account.login,
            f"{streak} day{'' if streak == 1 else 's'}{' 🔥' if streak >= 3 else ''}",
            f"{'█' * filled}{'░' * (STREAK_GOAL_DAYS - filled)} {filled}/{STREAK_GOAL_DAYS}",
            str(record.total_count),
        )

    console.print(table)


def _print_digest(snapshot: FeedSnapshot) -> None:
    digest = snapshot.digest
    console.print(f"[bold green]Daily Digest[/bold green] for {digest.day.isoformat()}\n")

    top = digest.top_contributor
    if top is not None:
        console.print(
            f"🏆 Top contributor: [bold]{top.account.login}[/bold] "
            f"({top.total_count} contributions in the last {digest.window_days} days, "
            f"{top.current_streak} day streak)\n"
        )

    table = Table(show_header=False)
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    table.add_row("🚀 Pushes", str(digest.summary.push_count))
    table.add_row("⭐ Stars", str(digest.summary.star_count))
    table.add_row("🔄 Pull Requests", str(digest.summary.pr_count))
    table.add_row("🎫 Issues", str(digest.summary.issue_count))
    table.add_row("👥 Following", str(digest.total_following))
    table.add_row("📊 Avg. Daily Activity", str(digest.average_daily_activity))
    console.print(table)


@app.command()
def feed(
    config_file: Path = ConfigOption,
    token: str = TokenOption,
    limit: int = typer.Option(
        DEFAULT_FEED_LIMIT, "--limit", "-n", min=1, help="Number of events to show"
    ),
    verbose: bool = VerboseOption,
):
    """Show the merged activity feed of everyone you follow, newest first."""
    _setup_logging(verbose)
    snapshot = _fetch(_resolve_config(config_file, token))
    _print_feed(snapshot, limit)


@app.command()
def streaks(
    config_file: Path = ConfigOption,
    token: str = TokenOption,
    verbose: bool = VerboseOption,
):
    """Show the contribution streak leaderboard."""
    _setup_logging(verbose)
    snapshot = _fetch(_resolve_config(config_file, token))
    _print_streaks(snapshot)


@app.command()
def digest(
    config_file: Path = ConfigOption,
    token: str = TokenOption,
    verbose: bool = VerboseOption,
):
    """Show today's activity summary and top contributor."""
    _setup_logging(verbose)
    snapshot = _fetch(_resolve_config(config_file, token))
    _print_digest(snapshot)


@app.command()
def report(
    config_file: Path = ConfigOption,
    token: str = TokenOption,
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path (overrides config file setting)",
    ),
    limit: int = typer.Option(
        DEFAULT_FEED_LIMIT, "--limit", "-n", min=1, help="Number of feed events to include"
    ),
    verbose: bool = VerboseOption,
):
    """Write the feed, streaks and digest to a Markdown file."""
    _setup_logging(verbose)
    config = _resolve_config(config_file, token)
    snapshot = _fetch(config)
    output_path = output or config.output or "gitplay-report.md"

    try:
        generate_markdown_report(snapshot, output_path, feed_limit=limit)
        console.print(f"[bold green]✓[/bold green] Report generated: {output_path}")
    except OSError as e:
        console.print(f"[red]Error generating report:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def validate(
    config_file: Path = ConfigOption,
    token: str = TokenOption,
    verbose: bool = VerboseOption,
):
    """Validate the configuration and check that the token is accepted."""
    _setup_logging(verbose)
    config = _resolve_config(config_file, token)

    async def check():
        async with _make_client(config) as client:
            return await client.validate_credential()

    try:
        account = asyncio.run(check())
    except AuthenticationFailure as e:
        console.print(f"[red]✗ Token rejected:[/red] {e}")
        raise typer.Exit(1)
    except ForgeError as e:
        console.print(f"[red]✗ Could not validate token:[/red] {e}")
        raise typer.Exit(1)

    console.print("[green]✓[/green] Configuration is valid")
    console.print(f"\nSigned in as: {account.login}")
    console.print(f"Endpoint: {config.endpoint}")
    console.print(f"Lookback window: {config.window_days} days")


if __name__ == "__main__":
    main()
