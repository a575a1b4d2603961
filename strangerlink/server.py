import asyncio
import functools
import logging

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed, ConnectionClosedError
from websockets.protocol import State

from strangerlink.coordinator import SessionCoordinator

logger = logging.getLogger(__name__)


class WebSocketChannel:
    """
    Send capability handed to the coordinator for one websocket.

    ``send`` never blocks: frames go into an outbox that a writer task
    drains in order.
    """

    def __init__(self, websocket):
        self.websocket = websocket
        self._outbox = asyncio.Queue()
        self._writer = asyncio.create_task(self._drain())

    def ready(self):
        return self.websocket.state is State.OPEN

    def send(self, text):
        self._outbox.put_nowait(text)

    async def _drain(self):
        while True:
            text = await self._outbox.get()
            if not self.ready():
                continue
            try:
                await self.websocket.send(text)
            except ConnectionClosed:
                # The handler's close path takes care of cleanup.
                return

    async def close(self):
        self._writer.cancel()
        try:
            await self._writer
        except asyncio.CancelledError:
            pass


async def handler(websocket, coordinator):
    """Feeds one websocket's lifecycle and frames into the coordinator."""
    channel = WebSocketChannel(websocket)
    handle = coordinator.on_connect(channel)
    logger.debug("Client %s is %s", handle.client_id, websocket.remote_address)
    try:
        async for frame in websocket:
            coordinator.on_message(handle, frame)
    except ConnectionClosedError as e:
        coordinator.on_error(handle, e)
    except Exception as e:
        logger.exception("Unexpected error for client %s", handle.client_id)
        coordinator.on_error(handle, e)
    finally:
        # --- Cleanup Logic ---
        # No-op when the error path already dropped the client.
        coordinator.on_close(handle)
        await channel.close()


def create_server(coordinator, host, port):
    """Returns the websockets server; use it as an async context manager."""
    return serve(functools.partial(handler, coordinator=coordinator), host, port)


async def run(settings, coordinator=None):
    coordinator = coordinator or SessionCoordinator(
        escalation_delay_ms=settings.escalation_delay_ms,
        partition_by_mode=settings.partition_by_mode,
    )
    logger.info("Starting websocket server on %s:%d...", settings.host, settings.port)
    async with create_server(coordinator, settings.host, settings.port):
        await asyncio.Future()  # Run forever
