import logging
import uuid
from enum import Enum

from strangerlink.protocol import Mode

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    PAIRED = "paired"
    DISCONNECTED = "disconnected"


class ClientHandle:
    """
    One live connection as seen by the matchmaking core.

    ``channel`` is the transport's capability object: it must expose
    ``send(text)`` and ``ready()``. The core never mutates it.
    """

    def __init__(self, channel, client_id=None):
        self.channel = channel
        self.client_id = client_id or uuid.uuid4().hex[:8]
        self.state = LifecycleState.IDLE
        self.mode = Mode.VOICE

    def is_open(self):
        return bool(self.channel.ready())

    def send(self, text):
        # Best-effort: frames to a socket that is not open are dropped.
        if self.is_open():
            self.channel.send(text)

    def __repr__(self):
        return f"<ClientHandle {self.client_id} {self.state.value}/{self.mode.value}>"


class ClientRegistry:
    """
    Per-connection bookkeeping keyed by the handle itself; ``client_id`` is
    only a log label and need not be unique. Never sends anything.
    """

    def __init__(self):
        # Insertion-ordered set of live handles.
        self._clients = {}

    def register(self, handle):
        handle.state = LifecycleState.IDLE
        self._clients[handle] = None

    def set_mode(self, handle, mode):
        handle.mode = Mode(mode)

    def set_state(self, handle, state):
        state = LifecycleState(state)
        if handle.state is not state:
            logger.debug("Client %s: %s -> %s", handle.client_id, handle.state.value, state.value)
            handle.state = state

    def forget(self, handle):
        self._clients.pop(handle, None)

    def __contains__(self, handle):
        return handle in self._clients

    def __iter__(self):
        return iter(list(self._clients))

    def __len__(self):
        return len(self._clients)
