"""WebSocket endpoint for real-time price streaming."""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from contractscope.errors import InvalidInputError
from contractscope.market.models import pair_symbol

router = APIRouter(tags=["live"])


@router.websocket("/ws/prices/{symbol}")
async def prices_ws(websocket: WebSocket, symbol: str):
    """Relay provider ticks for a symbol until the client disconnects."""
    await websocket.accept()

    try:
        pair = pair_symbol(symbol)
    except InvalidInputError as e:
        await websocket.close(code=1008, reason=str(e))
        return

    stream = websocket.app.state.config.build_stream()

    async def on_tick(price: float) -> None:
        await websocket.send_text(
            json.dumps({"type": "tick", "symbol": pair, "price": price})
        )

    # Disconnects surface only through reads; the relay never reads
    relay = asyncio.create_task(stream.subscribe(pair, on_tick))
    watcher = asyncio.create_task(_until_disconnect(websocket))
    done, pending = await asyncio.wait(
        {relay, watcher}, return_when=asyncio.FIRST_COMPLETED
    )
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)

    for task in done:
        error = task.exception()
        if error is not None and not isinstance(error, WebSocketDisconnect):
            raise error


async def _until_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
