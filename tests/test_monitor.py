"""Tests for a full monitoring pass."""

import httpx
import pytest

from bandwidth_guard import monitor as monitor_module
from bandwidth_guard.alerter import DeliveryError, SlackClient
from bandwidth_guard.config import Config
from bandwidth_guard.monitor import BandwidthMonitor, run_monitor
from bandwidth_guard.provider import FetchError, HetznerClient, ShutdownError
from bandwidth_guard.usage import ServerUsageRecord, ThresholdConfig

TB = 1024**4


def record(server_id: int, used_tb: int, limit_tb: int = 20) -> ServerUsageRecord:
    return ServerUsageRecord(
        id=server_id,
        name=f"srv-{server_id}",
        status="running",
        outgoing_traffic=used_tb * TB,
        included_traffic=limit_tb * TB,
    )


class FakeProvider:
    def __init__(self, records=None, fetch_error=None, failing=None):
        self.records = records or []
        self.fetch_error = fetch_error
        self.failing = failing or set()
        self.shutdowns: list[int] = []

    def fetch_servers(self):
        if self.fetch_error:
            raise self.fetch_error
        return self.records

    def shutdown_server(self, server_id):
        self.shutdowns.append(server_id)
        if server_id in self.failing:
            raise ShutdownError("rejected")


class FakeNotifier:
    def __init__(self, error=None):
        self.error = error
        self.messages: list[str] = []
        self.block_messages: list[tuple[list, str]] = []

    def send(self, message):
        self.messages.append(message)
        if self.error:
            raise self.error

    def send_blocks(self, blocks, text):
        self.block_messages.append((blocks, text))
        if self.error:
            raise self.error


def make_config(send_always: bool = False) -> Config:
    return Config(
        api_token="token",
        thresholds=ThresholdConfig(notify_threshold=50, kill_threshold=90),
        send_always=send_always,
    )


@pytest.fixture
def output() -> list[str]:
    return []


class TestBandwidthMonitor:
    """Tests for the run orchestration."""

    def test_quiet_run_sends_nothing(self, output):
        notifier = FakeNotifier()
        monitor = BandwidthMonitor(
            make_config(), FakeProvider([record(1, 1)]), notifier, echo=output.append
        )

        assert monitor.run() == 0
        assert notifier.block_messages == []
        assert len(output) == 1  # table only
        assert "srv-1" in output[0]

    def test_kill_and_notify(self, output):
        provider = FakeProvider([record(1, 1), record(2, 12), record(3, 19)])
        notifier = FakeNotifier()
        monitor = BandwidthMonitor(make_config(), provider, notifier, echo=output.append)

        assert monitor.run() == 0
        assert provider.shutdowns == [3]
        assert len(notifier.block_messages) == 1
        blocks, text = notifier.block_messages[0]
        assert "Servers Killed" in text
        report_text = output[-1]
        assert "srv-3 (was running)" in report_text
        assert "srv-2 (running)" in report_text

    def test_failed_shutdown_not_reported_as_killed(self, output):
        provider = FakeProvider([record(1, 19), record(2, 12)], failing={1})
        notifier = FakeNotifier()
        monitor = BandwidthMonitor(make_config(), provider, notifier, echo=output.append)

        assert monitor.run() == 0
        _, text = notifier.block_messages[0]
        assert "Servers Killed" not in text
        assert "SHUT DOWN" not in output[-1]
        assert "KILL" in output[0]

    def test_dry_run_does_not_shut_down(self, output):
        provider = FakeProvider([record(1, 19)])
        monitor = BandwidthMonitor(
            make_config(), provider, FakeNotifier(), echo=output.append, dry_run=True
        )

        assert monitor.run() == 0
        assert provider.shutdowns == []

    def test_send_always_full_report(self, output):
        notifier = FakeNotifier()
        monitor = BandwidthMonitor(
            make_config(send_always=True),
            FakeProvider([record(1, 1), record(2, 2)]),
            notifier,
            echo=output.append,
        )

        assert monitor.run() == 0
        blocks, text = notifier.block_messages[0]
        assert text == "📊 Server Bandwidth Report"
        assert "showing all 2 server(s)" in output[-1]

    def test_console_only_prints_report_and_hint(self, output):
        monitor = BandwidthMonitor(
            make_config(), FakeProvider([record(1, 12)]), None, echo=output.append
        )

        assert monitor.run() == 0
        assert any("srv-1 (running)" in line for line in output)
        assert "SLACK_WEBHOOK_URL" in output[-1]

    def test_delivery_failure_keeps_exit_zero(self, output):
        notifier = FakeNotifier(error=DeliveryError("Slack webhook returned 500"))
        monitor = BandwidthMonitor(
            make_config(), FakeProvider([record(1, 12)]), notifier, echo=output.append
        )

        assert monitor.run() == 0
        assert any("srv-1 (running)" in line for line in output)

    def test_fetch_failure_alerts_and_exits_nonzero(self, output):
        notifier = FakeNotifier()
        provider = FakeProvider(fetch_error=FetchError("Provider API returned 401"))
        monitor = BandwidthMonitor(make_config(), provider, notifier, echo=output.append)

        assert monitor.run() == 1
        assert output == []
        assert len(notifier.messages) == 1
        assert "401" in notifier.messages[0]
        assert provider.shutdowns == []

    def test_fetch_failure_with_broken_webhook(self, output):
        notifier = FakeNotifier(error=DeliveryError("down"))
        provider = FakeProvider(fetch_error=FetchError("timeout"))
        monitor = BandwidthMonitor(make_config(), provider, notifier, echo=output.append)

        assert monitor.run() == 1

    def test_fetch_failure_without_webhook(self, output):
        provider = FakeProvider(fetch_error=FetchError("timeout"))
        monitor = BandwidthMonitor(make_config(), provider, None, echo=output.append)

        assert monitor.run() == 1

    def test_invalid_webhook_url_keeps_exit_zero(self, output):
        """Servers are already shut down when delivery fails; the run still succeeds."""
        provider = FakeProvider([record(1, 19)])
        notifier = SlackClient("https://hooks.slack.test/services/X\n")
        monitor = BandwidthMonitor(make_config(), provider, notifier, echo=output.append)

        assert monitor.run() == 0
        assert provider.shutdowns == [1]
        assert "SHUT DOWN" in output[-1]

    def test_fetch_failure_with_invalid_webhook_url(self, output):
        provider = FakeProvider(fetch_error=FetchError("timeout"))
        notifier = SlackClient("https://hooks.slack.test/services/X\n")
        monitor = BandwidthMonitor(make_config(), provider, notifier, echo=output.append)

        assert monitor.run() == 1


class TestRunMonitor:
    """Tests for building clients from config and running one pass."""

    @pytest.fixture
    def provider_requests(self, monkeypatch: pytest.MonkeyPatch):
        """Route HetznerClient through a mock transport; collect requests and clients."""
        seen: dict[str, list] = {"requests": [], "clients": []}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["requests"].append(request)
            if request.headers["Authorization"] != "Bearer token":
                return httpx.Response(401, json={"error": {"code": "unauthorized"}})
            if request.method == "GET":
                return httpx.Response(
                    200,
                    json={
                        "servers": [
                            {
                                "id": 1,
                                "name": "web-1",
                                "status": "running",
                                "outgoing_traffic": 19 * TB,
                                "included_traffic": 20 * TB,
                            },
                            {
                                "id": 2,
                                "name": "web-2",
                                "status": "running",
                                "outgoing_traffic": 1 * TB,
                                "included_traffic": 20 * TB,
                            },
                        ]
                    },
                )
            return httpx.Response(201, json={"action": {"command": "shutdown_server"}})

        def make_client(api_token, base_url, timeout):
            client = HetznerClient(
                api_token,
                base_url=base_url,
                timeout=timeout,
                transport=httpx.MockTransport(handler),
            )
            seen["clients"].append(client)
            return client

        monkeypatch.setattr(monitor_module, "HetznerClient", make_client)
        return seen

    def test_full_run_with_webhook(self, provider_requests, monkeypatch, capsys):
        posts = []

        class OkResponse:
            def raise_for_status(self) -> None:
                pass

        def fake_post(url, json, timeout):
            posts.append((url, json, timeout))
            return OkResponse()

        monkeypatch.setattr(httpx, "post", fake_post)
        config = Config(
            api_token="token",
            api_url="https://api.example.test/v1",
            slack_webhook_url="https://hooks.slack.test/abc",
            timeout_seconds=7.0,
        )

        assert run_monitor(config) == 0

        requests = provider_requests["requests"]
        assert [(r.method, r.url.host, r.url.path) for r in requests] == [
            ("GET", "api.example.test", "/v1/servers"),
            ("POST", "api.example.test", "/v1/servers/1/actions/shutdown"),
        ]
        client = provider_requests["clients"][0]
        assert client.client.timeout == httpx.Timeout(7.0)
        assert client.client.is_closed

        assert len(posts) == 1
        url, payload, timeout = posts[0]
        assert url == "https://hooks.slack.test/abc"
        assert timeout == 7.0
        assert "Servers Killed" in payload["text"]

        out = capsys.readouterr().out
        assert "web-2" in out
        assert "web-1 (was running)" in out

    def test_no_webhook_is_console_only(self, provider_requests, monkeypatch, capsys):
        def fail_post(url, json, timeout):
            raise AssertionError("webhook must not be called")

        monkeypatch.setattr(httpx, "post", fail_post)
        config = Config(api_token="token", api_url="https://api.example.test/v1")

        assert run_monitor(config) == 0

        assert [r.method for r in provider_requests["requests"]] == ["GET", "POST"]
        assert provider_requests["clients"][0].client.is_closed
        out = capsys.readouterr().out
        assert "web-1 (was running)" in out
        assert "Set SLACK_WEBHOOK_URL" in out

    def test_dry_run_sends_no_shutdown(self, provider_requests, capsys):
        config = Config(api_token="token", api_url="https://api.example.test/v1")

        assert run_monitor(config, dry_run=True) == 0

        assert [r.method for r in provider_requests["requests"]] == ["GET"]
        assert "KILL" in capsys.readouterr().out

    def test_fetch_failure_exits_nonzero_and_closes_client(self, provider_requests):
        config = Config(api_token="wrong", api_url="https://api.example.test/v1")

        assert run_monitor(config) == 1
        assert provider_requests["clients"][0].client.is_closed
