"""Main CLI entry point using Typer."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

import typer
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..aws.provider import EC2BackupProvider
from ..backup.runner import BackupRunner
from ..models.pass_result import PassResult
from ..policy.engine import BackupPolicyEngine
from ..policy.tags import BACKUP_ENABLED_TAG, BACKUP_ENABLED_VALUE, BACKUP_PURGE_TAG, NAME_TAG
from ..utils.logging import setup_logging
from .config import Config, ConfigError

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="ebs-backup",
    help="EBS Backup Manager - tag-driven EBS snapshot scheduling and purging",
    add_completion=False,
)

# Create Rich console for output
console = Console()

# Global config
config: Optional[Config] = None


def _format_epoch(epoch: Optional[int]) -> str:
    if not epoch:
        return "never"
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _provider_factory(aws_profile: Optional[str]):
    def factory(region: Optional[str]) -> EC2BackupProvider:
        return EC2BackupProvider(region=region, aws_profile=aws_profile)

    return factory


@app.callback()
def main(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile name"),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to YAML config file (default: $EBS_BACKUP_CONFIG or ~/.ebs-backup/config.yaml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress output except errors"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """EBS Backup Manager - tag-driven EBS snapshot scheduling and purging."""
    global config

    # Load configuration
    try:
        config = Config.load(config_path)
    except ConfigError as e:
        console.print(f"✗ {e}", style="bold red")
        raise typer.Exit(code=1)

    # Override with CLI options
    if profile:
        config.aws_profile = profile

    # Setup logging
    log_level = "ERROR" if quiet else ("DEBUG" if verbose else config.log_level)
    setup_logging(level=log_level, verbose=verbose)

    # Disable colors if requested
    if no_color:
        console.no_color = True


@app.command()
def version():
    """Show version information."""
    console.print(f"ebs-backup version {__version__}")


@app.command()
def run(
    region: Optional[List[str]] = typer.Option(
        None, "--region", "-r", help="Region to process (repeatable, processed in order)"
    ),
    interval: Optional[int] = typer.Option(
        None, "--interval", min=1, help="Poll every N seconds instead of running a single pass"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log intended actions without applying them"),
):
    """Back up due volumes and purge expired snapshots.

    Volumes tagged backup.enabled=true are snapshotted once their
    backup.frequency_hours have elapsed since backup.last. Snapshots whose
    backup.purge time has passed are deleted. With --interval, runs until
    interrupted.

    Examples:
        ebs-backup run                                  # Single pass, default region
        ebs-backup run -r us-east-1 -r us-west-2        # Single pass, two regions in order
        ebs-backup run --dry-run                        # Show what would happen
        ebs-backup run --interval 3600                  # Poll hourly
    """
    regions = region or config.regions
    interval_seconds = interval if interval is not None else config.interval_seconds
    dry_run = dry_run or config.dry_run

    runner = BackupRunner(provider_factory=_provider_factory(config.aws_profile))

    if interval_seconds is not None:
        console.print(f"Polling every {interval_seconds}s (Ctrl+C to stop)", style="dim")

    try:
        result = runner.run(regions, interval_seconds=interval_seconds, dry_run=dry_run)
    except KeyboardInterrupt:
        console.print("\nEBS backup monitor stopped", style="yellow")
        raise typer.Exit(code=0)
    except (ClientError, BotoCoreError) as e:
        console.print(f"✗ AWS error during backup pass: {e}", style="bold red")
        logger.exception("Error in run command")
        raise typer.Exit(code=2)

    _print_pass_summary(result)


def _print_pass_summary(result: PassResult) -> None:
    title = "Planned actions (dry run)" if result.dry_run else "Completed actions"

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Action", style="bold")
    table.add_column("Region")
    table.add_column("Resource", no_wrap=True)
    table.add_column("Snapshot")
    table.add_column("Purge At")
    table.add_column("Status")

    for backup in result.backups:
        table.add_row(
            "backup",
            backup.region or "default",
            backup.volume_id,
            backup.snapshot_id or backup.intent.name,
            _format_epoch(backup.intent.purge_at),
            backup.status.value,
        )

    for purge in result.purges:
        table.add_row(
            "purge",
            purge.region or "default",
            purge.snapshot_id,
            "",
            _format_epoch(purge.purge_at),
            purge.status.value,
        )

    if not result.backups and not result.purges:
        console.print("✓ Nothing to do: no volumes due for backup and no snapshots due for purge", style="green")
    else:
        console.print(table)
        console.print(f"\n✓ {len(result.backups)} backup(s), {len(result.purges)} purge(s)", style="bold green")

    if result.skipped_snapshots:
        console.print(
            f"⚠️  Skipped {len(result.skipped_snapshots)} snapshot(s) with an unparseable {BACKUP_PURGE_TAG} tag: "
            + ", ".join(result.skipped_snapshots),
            style="yellow",
        )


@app.command()
def status(
    region: Optional[List[str]] = typer.Option(None, "--region", "-r", help="Region to inspect (repeatable)"),
):
    """Show backup state of enabled volumes and managed snapshots.

    Read-only: reports what the next pass would do without changing anything.
    """
    regions = region or config.regions or [None]
    engine = BackupPolicyEngine()
    factory = _provider_factory(config.aws_profile)
    now = int(datetime.now(timezone.utc).timestamp())

    try:
        for region_name in regions:
            provider = factory(region_name)
            label = region_name or "default"

            volume_table = Table(title=f"Volumes ({label})", show_header=True, header_style="bold cyan")
            volume_table.add_column("Volume ID", style="cyan", no_wrap=True)
            volume_table.add_column("Name")
            volume_table.add_column("Frequency (h)", justify="right")
            volume_table.add_column("Retention (h)", justify="right")
            volume_table.add_column("Last Backup")
            volume_table.add_column("Next Due")
            volume_table.add_column("Due Now")

            for volume in provider.list_volumes(BACKUP_ENABLED_TAG, BACKUP_ENABLED_VALUE):
                policy = engine.policy_for(volume)
                due = engine.is_backup_due(volume, now)
                volume_table.add_row(
                    volume.resource_id,
                    volume.get_tag(NAME_TAG, ""),
                    str(policy.frequency_hours),
                    str(policy.retention_hours),
                    _format_epoch(policy.last_backup),
                    "now" if due else _format_epoch(policy.next_backup_at()),
                    "[green]yes[/green]" if due else "no",
                )

            snapshot_table = Table(title=f"Snapshots ({label})", show_header=True, header_style="bold cyan")
            snapshot_table.add_column("Snapshot ID", style="cyan", no_wrap=True)
            snapshot_table.add_column("Name")
            snapshot_table.add_column("Purge At")
            snapshot_table.add_column("Eligible")

            for snapshot in provider.list_snapshots(BACKUP_PURGE_TAG):
                decision = engine.decide_purge(snapshot, now)
                if decision.purge_at is None:
                    purge_at = "[yellow]unparseable[/yellow]"
                else:
                    purge_at = _format_epoch(decision.purge_at)
                snapshot_table.add_row(
                    snapshot.resource_id,
                    snapshot.get_tag(NAME_TAG, ""),
                    purge_at,
                    "[red]yes[/red]" if decision.eligible else "no",
                )

            console.print(volume_table)
            console.print(snapshot_table)

    except (ClientError, BotoCoreError) as e:
        console.print(f"✗ AWS error while reading backup state: {e}", style="bold red")
        logger.exception("Error in status command")
        raise typer.Exit(code=2)


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
