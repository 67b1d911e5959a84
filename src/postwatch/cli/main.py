"""Main CLI application using Click framework."""

import asyncio
import functools
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import ConfigError, ConfigLoader, get_settings
from ..notification import NotificationError, create_notifier
from ..scraper import FetchError, IsraelPostFetcher
from ..storage import StorageError, TrackedPackage, WatchlistStore
from ..tracking import (
    CheckOutcome,
    CheckSummary,
    PackageMonitor,
    SnapshotExtractor,
    format_event_rows,
    format_latest_event,
    get_keyword_set,
)
from ..utils.logging import get_structured_logger, setup_logging
from .types import CLIContext, CLIError, CommandResult

console = Console()
logger = get_structured_logger(__name__)

RAW_PREVIEW_LINES = 30


def async_command(f):
    """Decorator to run async functions in Click commands."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return asyncio.run(f(*args, **kwargs))
        except KeyboardInterrupt:
            console.print("❌ Operation cancelled by user", style="red")
            sys.exit(1)

    return wrapper


def handle_result(result: CommandResult, ctx: CLIContext) -> None:
    """Handle command result output."""
    if result.success:
        if result.message:
            console.print(f"✅ {result.message}", style="green")
        if result.data and ctx.verbose:
            console.print_json(data=result.data)
    else:
        console.print(f"❌ {result.message}", style="red")
        if result.data and ctx.debug:
            console.print_json(data=result.data)
        sys.exit(result.exit_code)


def normalize_tracking_id(value: str) -> str:
    tracking_id = (value or "").strip().upper()
    if not tracking_id:
        raise click.BadParameter("tracking number cannot be empty")
    return tracking_id


def build_extractor(ctx: CLIContext) -> SnapshotExtractor:
    tracking = ctx.settings.tracking
    return SnapshotExtractor(
        keywords=get_keyword_set(*tracking.locales),
        raw_limit=tracking.raw_text_limit,
    )


def build_fetcher(ctx: CLIContext) -> IsraelPostFetcher:
    return IsraelPostFetcher(
        tracking=ctx.settings.tracking,
        scraping=ctx.settings.scraping,
        extractor=build_extractor(ctx),
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Watchlist file (default: ~/.israel-post-state.json)",
)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file with extra keyword locales",
)
@click.pass_context
def cli(
    ctx,
    verbose: bool,
    debug: bool,
    state_file: Optional[Path],
    config: Optional[Path],
) -> None:
    """Israel Post package monitor - track shipments and get notified on changes."""
    try:
        settings = get_settings()
    except ConfigError as e:
        raise CLIError(str(e)) from e

    log_level = "DEBUG" if debug else "INFO" if verbose else settings.log_level
    setup_logging(log_level=log_level, json_logs=settings.json_logs)

    config_file = config or settings.config_file
    if config_file:
        try:
            ConfigLoader(config_file).register_locales()
        except ConfigError as e:
            raise CLIError(str(e)) from e

    store = WatchlistStore(
        state_file or settings.storage.state_file,
        default_channel=settings.notification.default_channel,
    )
    ctx.obj = CLIContext(settings=settings, store=store, verbose=verbose, debug=debug)


@cli.command()
@click.argument("tracking_number")
@click.argument("name", nargs=-1)
@click.pass_obj
def add(ctx: CLIContext, tracking_number: str, name: tuple[str, ...]) -> None:
    """Add a package to the watchlist."""
    tracking_id = normalize_tracking_id(tracking_number)
    display_name = " ".join(name).strip() or tracking_id

    existing = ctx.store.get(tracking_id)
    if existing:
        console.print(
            f"Already tracking {tracking_id} ({escape(existing.display_name)})"
        )
        return

    ctx.store.upsert(
        tracking_id, TrackedPackage(id=tracking_id, display_name=display_name)
    )
    ctx.store.commit()
    logger.info("Package added", tracking_id=tracking_id)

    handle_result(
        CommandResult(
            success=True,
            message=f'Added: {tracking_id} — "{escape(display_name)}"',
            data={"tracking_id": tracking_id, "name": display_name},
        ),
        ctx,
    )
    console.print("   Run 'postwatch check' to fetch initial status.")


@click.command()
@click.argument("tracking_number")
@click.pass_obj
def remove(ctx: CLIContext, tracking_number: str) -> None:
    """Remove a package from the watchlist."""
    tracking_id = normalize_tracking_id(tracking_number)

    removed = ctx.store.remove(tracking_id)
    if removed is None:
        console.print(f"Not tracking {tracking_id}")
        return

    ctx.store.commit()
    logger.info("Package removed", tracking_id=tracking_id)
    handle_result(
        CommandResult(
            success=True,
            message=f'Removed: {tracking_id} — "{escape(removed.display_name)}"',
        ),
        ctx,
    )


cli.add_command(remove)
cli.add_command(remove, name="rm")
cli.add_command(remove, name="delete")


def _package_status(package: TrackedPackage) -> str:
    if package.delivered:
        return "✅ Delivered"
    if package.last_signature:
        return "🔄 In transit"
    return "⏳ Not yet checked"


@click.command(name="list")
@click.pass_obj
def list_packages(ctx: CLIContext) -> None:
    """Show all tracked packages."""
    packages = ctx.store.list()

    if not packages:
        console.print(
            "No packages being tracked. Use: postwatch add <TRACKING_NUMBER> [name]"
        )
        return

    table = Table(title=f"📦 Tracking {len(packages)} package(s)")
    table.add_column("Tracking number", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Last checked")
    table.add_column("Last event")

    for tracking_id, package in packages:
        checked = (
            package.last_checked_at.astimezone().strftime("%Y-%m-%d %H:%M")
            if package.last_checked_at
            else "Never checked"
        )
        table.add_row(
            tracking_id,
            escape(package.display_name),
            _package_status(package),
            checked,
            escape(format_latest_event(package.last_signature)),
        )

    console.print(table)


cli.add_command(list_packages)
cli.add_command(list_packages, name="ls")


def _print_summary(summary: CheckSummary) -> None:
    icons = {
        CheckOutcome.SKIPPED_DELIVERED: "✅ already delivered, skipped",
        CheckOutcome.NOT_FOUND: "❓ no data found yet",
        CheckOutcome.BASELINE: "📝 baseline saved",
        CheckOutcome.UNCHANGED: "➡️  no change",
        CheckOutcome.CHANGED: "🆕 status changed",
        CheckOutcome.ERROR: "❌ check failed",
    }

    for check in summary.checks:
        line = f"{check.package_id}: {icons[check.outcome]}"
        if check.outcome is CheckOutcome.BASELINE and check.result:
            latest = format_latest_event(check.result.new_signature) or "status unknown"
            line += f" ({latest})"
        if check.error:
            line += f" ({check.error})"
        console.print(line, markup=False, highlight=False)
        if check.message:
            console.print(check.message, markup=False, highlight=False)

    console.print(
        f"\n✅ Check complete. {summary.notified_count} notification(s) sent.",
        style="green",
    )


@click.command()
@click.pass_obj
@async_command
async def check(ctx: CLIContext) -> None:
    """Check all packages and notify on status changes."""
    packages = ctx.store.list()
    if not packages:
        console.print(
            "No packages to check. Add one with: postwatch add <TRACKING_NUMBER> [name]"
        )
        return

    try:
        notifier = create_notifier(ctx.store.notify_target, ctx.settings.notification)
    except NotificationError as e:
        handle_result(CommandResult(success=False, message=str(e), exit_code=1), ctx)
        return

    console.print(f"🔍 Checking {len(packages)} package(s)...\n")

    async with build_fetcher(ctx) as fetcher:
        monitor = PackageMonitor(
            store=ctx.store,
            fetcher=fetcher,
            notifier=notifier,
            check_delay=ctx.settings.tracking.check_delay,
        )
        summary = await monitor.run_check_cycle()

    _print_summary(summary)


cli.add_command(check)
cli.add_command(check, name="run")


@cli.command(name="set-target")
@click.argument("target")
@click.argument("channel", required=False)
@click.pass_obj
def set_target(ctx: CLIContext, target: str, channel: Optional[str]) -> None:
    """Set where change notifications are sent."""
    target = target.strip()
    channel = (channel or ctx.settings.notification.default_channel).strip()
    if not target:
        raise click.BadParameter("target cannot be empty")

    ctx.store.set_notify_target(target, channel)
    ctx.store.commit()
    handle_result(
        CommandResult(
            success=True,
            message=f"Notifications will be sent to {escape(target)} via {escape(channel)}",
        ),
        ctx,
    )


@cli.command()
@click.argument("tracking_number")
@click.pass_obj
@async_command
async def track(ctx: CLIContext, tracking_number: str) -> None:
    """Look up one package and print its event history."""
    tracking_id = normalize_tracking_id(tracking_number)
    console.print(f"🔍 Tracking: {tracking_id}")

    try:
        async with build_fetcher(ctx) as fetcher:
            snapshot = await fetcher.fetch_tracking_page(tracking_id)
    except FetchError as e:
        handle_result(
            CommandResult(success=False, message=f"Error: {str(e)}", exit_code=1), ctx
        )
        return

    if not snapshot.found:
        console.print(f"\n❌ No tracking information found for: {tracking_id}")
        console.print("   • Verify the tracking number is correct")
        console.print(
            "   • International packages may take 24–48h to appear after dispatch"
        )
        console.print(f"\n🔗 Check manually: {ctx.settings.tracking.tracking_url}")
        sys.exit(1)

    console.print(f"\n✅ Tracking results for {tracking_id}:\n", style="green")
    if snapshot.events:
        lines = ["  " + row for row in format_event_rows(snapshot.events)]
    else:
        lines = [line.strip() for line in snapshot.raw.split("\n")]
        lines = [line for line in lines if len(line) > 3][:RAW_PREVIEW_LINES]

    for line in lines:
        console.print(line, markup=False, highlight=False)


def run() -> None:
    """Run the CLI, mapping storage failures to a clean exit."""
    try:
        cli()
    except StorageError as e:
        console.print(f"❌ Error: {str(e)}", style="red")
        sys.exit(1)
