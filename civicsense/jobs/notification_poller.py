from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from civicsense.services.notifications import Notification, NotificationBus

logger = logging.getLogger(__name__)


class NotificationPoller:
    """
    Client side of the notification channel: polls ``GET /notifications``
    and re-dispatches new events to a local bus. Transport errors are logged
    and the loop carries on; setting ``stop_event`` ends it.
    """

    def __init__(
        self,
        base_url: str,
        bus: NotificationBus,
        interval_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.bus = bus
        self.interval_seconds = interval_seconds
        self.client = client
        self.last_seq = 0
        self.connected = False

    async def _fetch(self, client: httpx.AsyncClient) -> dict:
        r = await client.get(
            f"{self.base_url}/notifications", params={"after": self.last_seq}
        )
        r.raise_for_status()
        body = r.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected notifications payload: {type(body).__name__}")
        return body

    async def poll_once(self, client: httpx.AsyncClient) -> int:
        try:
            body = await self._fetch(client)
            server_seq = body.get("last_seq")
            if isinstance(server_seq, int) and server_seq < self.last_seq:
                # server restarted and its sequence began again
                logger.info("Notification sequence reset (%s < %s)", server_seq, self.last_seq)
                self.last_seq = 0
                body = await self._fetch(client)
        except (httpx.HTTPError, ValueError):
            logger.warning("Notification poll failed", exc_info=True)
            self.connected = False
            return 0

        self.connected = True
        events = body.get("events")
        if not isinstance(events, list):
            logger.warning("Notification payload without an events list")
            return 0

        dispatched = 0
        for raw in events:
            try:
                event = Notification(
                    seq=int(raw["seq"]),
                    type=str(raw["type"]),
                    data=raw.get("data") or {},
                    timestamp=raw.get("timestamp", ""),
                )
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Skipping malformed notification: %r", raw)
                continue
            self.last_seq = max(self.last_seq, event.seq)
            self.bus.dispatch(event)
            dispatched += 1
        return dispatched

    async def run(self, stop_event: asyncio.Event) -> None:
        client = self.client or httpx.AsyncClient(timeout=10.0)
        try:
            while not stop_event.is_set():
                await self.poll_once(client)
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
                except asyncio.TimeoutError:
                    continue
        finally:
            if self.client is None:
                await client.aclose()
