"""Single monitoring pass: fetch, classify, shut down, report."""

from collections.abc import Callable
from typing import Protocol

import click
import structlog

from bandwidth_guard.alerter import DeliveryError, SlackClient, compose
from bandwidth_guard.config import Config
from bandwidth_guard.executor import execute_kills, killed
from bandwidth_guard.provider import FetchError, HetznerClient
from bandwidth_guard.usage import ServerUsageRecord, classify, format_usage_table

log = structlog.get_logger()


class UsageProvider(Protocol):
    def fetch_servers(self) -> list[ServerUsageRecord]: ...

    def shutdown_server(self, server_id: int) -> None: ...


class BandwidthMonitor:
    """Runs one bandwidth check against the provider."""

    def __init__(
        self,
        config: Config,
        provider: UsageProvider,
        notifier: SlackClient | None = None,
        echo: Callable[[str], None] = click.echo,
        dry_run: bool = False,
    ):
        """Initialize the monitor.

        Args:
            config: Loaded configuration
            provider: Server API client
            notifier: Slack client, or None for console-only reporting
            echo: Console writer for the table and report
            dry_run: Classify and report without shutting anything down
        """
        self.config = config
        self.provider = provider
        self.notifier = notifier
        self.echo = echo
        self.dry_run = dry_run

    def _notify_fetch_failure(self, error: FetchError) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.send(
                f"*Server Bandwidth Monitor: fetch failed*\n"
                f"Could not retrieve the server list: {error}"
            )
        except DeliveryError as e:
            log.error("Failed to report fetch failure to Slack", error=str(e))

    def run(self) -> int:
        """Run the check and return the process exit status."""
        thresholds = self.config.thresholds
        log.info(
            "Starting bandwidth check",
            notify_threshold=thresholds.notify_threshold,
            kill_threshold=thresholds.kill_threshold,
            send_always=self.config.send_always,
            dry_run=self.dry_run,
        )

        try:
            records = self.provider.fetch_servers()
        except FetchError as e:
            log.error("Failed to fetch servers", error=str(e))
            self._notify_fetch_failure(e)
            return 1

        result = classify(records, thresholds)
        self.echo(format_usage_table(result))

        outcomes = execute_kills(self.provider, result.kill, dry_run=self.dry_run)
        killed_list = killed(outcomes)

        report = compose(
            notify_list=result.notify,
            all_list=result.all,
            killed_list=killed_list,
            send_always=self.config.send_always,
            thresholds=thresholds,
        )
        if report is None:
            log.info("No servers above thresholds", servers=len(records))
            return 0

        self.echo("")
        self.echo(report.to_text())

        if self.notifier is None:
            self.echo("Set SLACK_WEBHOOK_URL environment variable to receive Slack alerts.")
            return 0

        try:
            self.notifier.send_blocks(report.to_blocks(), text=report.header)
            log.info(
                "Slack alert sent",
                kind=report.kind.value,
                servers=len(report.server_lines),
                killed=len(report.killed_lines),
            )
        except DeliveryError as e:
            log.error("Error sending Slack message", error=str(e))

        return 0


def run_monitor(config: Config, dry_run: bool = False) -> int:
    """Run one check with clients built from config.

    Returns:
        Process exit status (0 on success, 1 if the fetch failed)
    """
    notifier = (
        SlackClient(config.slack_webhook_url, timeout=config.timeout_seconds)
        if config.slack_webhook_url
        else None
    )

    with HetznerClient(
        config.api_token, base_url=config.api_url, timeout=config.timeout_seconds
    ) as provider:
        monitor = BandwidthMonitor(config, provider, notifier=notifier, dry_run=dry_run)
        return monitor.run()
