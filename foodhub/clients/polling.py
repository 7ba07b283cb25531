"""
Polling Views

The client apps have no push channel; each screen re-fetches its data on a
fixed timer. A view owns one ``state`` snapshot and replaces it wholesale
on every successful fetch. A failed fetch is logged and counted, the old
snapshot stays in place and the next tick simply tries again.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class ClientError(Exception):
    """The API answered with an error payload."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


async def get_json(client: httpx.AsyncClient, path: str, **params) -> Any:
    """
    GET ``path`` and return the decoded body.

    Raises ClientError on 4xx/5xx and on a body that is not JSON.
    """
    response = await client.get(path, params={k: v for k, v in params.items() if v is not None})
    try:
        body = response.json()
    except ValueError:
        body = None
        if not response.is_error:
            raise ClientError(response.status_code, f"Invalid JSON body: {response.text[:200]}")

    if response.is_error:
        message = body.get("error") if isinstance(body, dict) else None
        raise ClientError(response.status_code, message or response.text)
    return body


@dataclass
class UiSettings:
    """Feature flags resolved once per client session."""
    flags: dict[str, str]

    def get(self, key: str, default: str = "") -> str:
        return self.flags.get(key, default)

    def is_enabled(self, key: str) -> bool:
        return self.get(key) == "true"


async def load_ui_settings(client: httpx.AsyncClient) -> UiSettings:
    return UiSettings(flags=dict(await get_json(client, "/api/settings")))


class PollingView(ABC):
    """Base class for a screen that refreshes on a timer."""

    interval: float = 5.0

    def __init__(self, client: httpx.AsyncClient, interval: Optional[float] = None):
        self.client = client
        if interval is not None:
            self.interval = interval
        self.state: Any = None
        self.refresh_count = 0
        self.error_count = 0
        self.last_error: Optional[Exception] = None

    @abstractmethod
    async def fetch(self) -> Any:
        """Load the view's data from the API."""

    async def refresh(self) -> bool:
        """Fetch once; on success replace ``state``. Returns whether it succeeded."""
        try:
            new_state = await self.fetch()
        except (httpx.HTTPError, ClientError) as e:
            self.error_count += 1
            self.last_error = e
            logger.warning(f"{type(self).__name__} refresh failed: {e}")
            return False

        self.state = new_state
        self.refresh_count += 1
        self.last_error = None
        return True

    async def run(self, stop_event: asyncio.Event, max_cycles: Optional[int] = None) -> None:
        """Refresh every ``interval`` seconds until ``stop_event`` is set."""
        cycles = 0
        while not stop_event.is_set():
            await self.refresh()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
