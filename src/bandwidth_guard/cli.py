"""CLI for bandwidth-guard.

Usage:
    bandwidth-guard check
    bandwidth-guard check --dry-run
    bandwidth-guard test-webhook
"""

from datetime import datetime
from pathlib import Path

import click
import structlog

from bandwidth_guard.alerter import DeliveryError, SlackClient
from bandwidth_guard.config import DEFAULT_CONFIG_PATH, Config, ConfigError
from bandwidth_guard.logging import configure_logging
from bandwidth_guard.monitor import run_monitor

log = structlog.get_logger()


def load_config(ctx: click.Context) -> Config:
    """Load config, exiting with status 1 if it is missing or invalid."""
    try:
        return Config.from_file(ctx.obj["config_path"])
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        ctx.exit(1)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Config file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Path, verbose: bool) -> None:
    """Hetzner Cloud bandwidth monitor."""
    configure_logging("bandwidth-guard", "DEBUG" if verbose else "INFO")
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@main.command("check")
@click.option("--dry-run", is_flag=True, help="Report kill-tier servers without shutting them down")
@click.pass_context
def check(ctx: click.Context, dry_run: bool) -> None:
    """Check bandwidth usage of every server and act on thresholds."""
    config = load_config(ctx)
    exit_code = run_monitor(config, dry_run=dry_run)
    if exit_code != 0:
        click.echo("Bandwidth check failed; see log output for details.", err=True)
    ctx.exit(exit_code)


@main.command("test-webhook")
@click.pass_context
def test_webhook(ctx: click.Context) -> None:
    """Send a test message to verify the Slack webhook is working."""
    config = load_config(ctx)
    if not config.slack_webhook_url:
        click.echo("SLACK_WEBHOOK_URL is not configured.", err=True)
        ctx.exit(1)

    client = SlackClient(config.slack_webhook_url, timeout=config.timeout_seconds)
    time_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    try:
        client.send(
            f"*Test Alert*\nbandwidth-guard is configured correctly ({time_str}).\n"
            f"Notify at {config.thresholds.notify_threshold}%, "
            f"shut down at {config.thresholds.kill_threshold}%."
        )
    except DeliveryError as e:
        log.error("Test alert failed", error=str(e))
        click.echo(f"Failed to send test alert: {e}", err=True)
        ctx.exit(1)

    click.echo("Test alert sent.")


if __name__ == "__main__":
    main()
