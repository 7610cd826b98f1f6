"""
WebSocket feed of the attendance table.

Each connection gets its own LiveView over a WebSocketSink: one task follows
the change source and applies every batch, one task sends the queued row
mutations, one task waits for the client to go away. Disconnecting cancels
the follower, which closes the change stream.
"""
import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket

from rollcall.api.deps import SIGN_IN_REQUIRED, WebSocketUser
from rollcall.services.change_source import ChangeSource, MongoChangeSource
from rollcall.services.live_view import LiveView
from rollcall.services.rendering import WebSocketSink

logger = logging.getLogger(__name__)

router = APIRouter(tags=["live"])

# Close code for sockets opened without a valid sign-in
WS_UNAUTHORIZED = 4401


def get_change_source() -> ChangeSource:
    return MongoChangeSource()


async def _follow(source: ChangeSource, view: LiveView, sink: WebSocketSink) -> None:
    try:
        async for batch in source.batches():
            view.apply_batch(batch)
    finally:
        sink.close()


async def _pump(websocket: WebSocket, sink: WebSocketSink) -> None:
    while True:
        message = await sink.queue.get()
        if message is None:
            return
        await websocket.send_json(message)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws/attendance")
async def attendance_feed(
    websocket: WebSocket,
    user: WebSocketUser,
    source: ChangeSource = Depends(get_change_source),
):
    await websocket.accept()
    if user is None:
        await websocket.send_json({"op": "notice", "message": SIGN_IN_REQUIRED})
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    sink = WebSocketSink()
    view = LiveView(sink)
    follower = asyncio.create_task(_follow(source, view, sink))
    pump = asyncio.create_task(_pump(websocket, sink))
    watcher = asyncio.create_task(_wait_for_disconnect(websocket))
    logger.info("Live feed opened for uid=%s", user.uid)

    try:
        await asyncio.wait({pump, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (follower, pump, watcher):
            task.cancel()
        await asyncio.gather(follower, pump, watcher, return_exceptions=True)
        view.close()

    if follower.done() and not follower.cancelled() and follower.exception() is not None:
        logger.error("Live feed source failed: %s", follower.exception())

    if watcher.cancelled() and not pump.cancelled() and pump.exception() is None:
        # Source ended (or failed) while the client was still connected
        await websocket.close()
    logger.info("Live feed closed for uid=%s", user.uid)
