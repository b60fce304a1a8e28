"""Hetzner Cloud API client for server traffic and shutdown actions."""

from __future__ import annotations

from typing import Any

import httpx

from bandwidth_guard.config import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS
from bandwidth_guard.logging import get_logger
from bandwidth_guard.usage.models import ServerUsageRecord

logger = get_logger(__name__)

# Hetzner caps per_page at 50
SERVERS_PER_PAGE = 50


class FetchError(Exception):
    """Raised when the server list cannot be retrieved."""

    pass


class ShutdownError(Exception):
    """Raised when a shutdown action is rejected or fails to reach the API."""

    pass


class HetznerClient:
    """Client for the Hetzner Cloud servers API."""

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> HetznerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get_page(self, page: int) -> dict[str, Any]:
        """Fetch one page of the server list.

        Raises:
            FetchError: Network errors, non-2xx status, or a non-JSON body.
        """
        try:
            response = self.client.get(
                "/servers", params={"page": page, "per_page": SERVERS_PER_PAGE}
            )
            response.raise_for_status()
            result: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Provider API returned {e.response.status_code} for server list"
            ) from e
        except httpx.RequestError as e:
            raise FetchError(f"Provider API request failed: {e}") from e
        except httpx.InvalidURL as e:
            raise FetchError(f"Provider API URL is invalid: {e}") from e
        except ValueError as e:
            raise FetchError(f"Provider API returned invalid JSON: {e}") from e
        return result

    def fetch_servers(self) -> list[ServerUsageRecord]:
        """Fetch every server with its traffic counters.

        Pages are requested one after another until the API reports no
        next page.

        Returns:
            Records in provider order.

        Raises:
            FetchError: If any page fails or the payload is malformed.
        """
        records: list[ServerUsageRecord] = []
        page: int | None = 1

        while page is not None:
            data = self._get_page(page)
            try:
                servers = data["servers"]
                records.extend(ServerUsageRecord.from_api(s) for s in servers)
                pagination = (data.get("meta") or {}).get("pagination") or {}
                next_page = pagination.get("next_page")
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise FetchError(f"Unexpected server list format: {e!r}") from e

            page = next_page if next_page and next_page != page else None

        logger.info("Fetched servers", count=len(records))
        return records

    def shutdown_server(self, server_id: int) -> None:
        """Request a graceful shutdown of a server.

        Raises:
            ShutdownError: Network errors or a non-2xx status (e.g. already
                off, insufficient token permissions).
        """
        try:
            response = self.client.post(f"/servers/{server_id}/actions/shutdown", json={})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ShutdownError(
                f"Shutdown of server {server_id} rejected with {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise ShutdownError(f"Shutdown request for server {server_id} failed: {e}") from e
        except httpx.InvalidURL as e:
            raise ShutdownError(f"Shutdown URL for server {server_id} is invalid: {e}") from e
