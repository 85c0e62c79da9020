"""Streaming price ticks from the provider's websocket ticker feed."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import random
from collections.abc import Awaitable, Callable

import websockets
from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)

DEFAULT_STREAM_URL = "wss://stream.binance.com:9443/ws"

TickHandler = Callable[[float], "Awaitable[None] | None"]


def parse_tick(raw: str | bytes) -> float | None:
    """Current price from a ticker message, or None if malformed."""
    try:
        data = json.loads(raw)
        return float(data["c"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None


class PriceStream:
    """Delivers successive price ticks for a symbol while subscribed.

    ``subscribe`` reconnects with capped exponential backoff when the feed
    drops and returns after ``max_ticks`` ticks if given. Cancel the task
    running it to unsubscribe.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_STREAM_URL,
        reconnect_delay: float = 5.0,
        max_delay: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._reconnect_delay = reconnect_delay
        self._max_delay = max_delay

    def url_for(self, symbol: str) -> str:
        return f"{self._base_url}/{symbol.lower()}@ticker"

    async def subscribe(
        self,
        symbol: str,
        on_tick: TickHandler,
        max_ticks: int | None = None,
    ) -> int:
        """Stream ticks into ``on_tick``. Returns the number delivered."""
        delivered = 0
        retry_delay = self._reconnect_delay

        while max_ticks is None or delivered < max_ticks:
            try:
                delivered = await self._listen(symbol, on_tick, delivered, max_ticks)
                retry_delay = self._reconnect_delay
            except ConnectionClosed as e:
                logger.warning("[stream] %s closed: %s", symbol, e)
            except OSError as e:
                logger.warning("[stream] %s connection error: %s", symbol, e)

            if max_ticks is not None and delivered >= max_ticks:
                break

            sleep_time = min(retry_delay + random.random(), self._max_delay)
            logger.info("[stream] Reconnecting %s in %.1fs", symbol, sleep_time)
            await asyncio.sleep(sleep_time)
            retry_delay = min(retry_delay * 2, self._max_delay)

        return delivered

    async def _listen(
        self,
        symbol: str,
        on_tick: TickHandler,
        delivered: int,
        max_ticks: int | None,
    ) -> int:
        async with websockets.connect(
            self.url_for(symbol), ping_interval=20, ping_timeout=10, close_timeout=5
        ) as ws:
            logger.info("[stream] Subscribed to %s", symbol)
            async for raw in ws:
                price = parse_tick(raw)
                if price is None:
                    logger.debug("[stream] Skipping malformed message")
                    continue
                result = on_tick(price)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
                if max_ticks is not None and delivered >= max_ticks:
                    break
        return delivered
