import json
import random

import pytest

from strangerlink.coordinator import SessionCoordinator


class FakeChannel:
    """Records frames sent to one client; ``open`` toggles readiness."""

    def __init__(self):
        self.frames = []
        self.open = True

    def ready(self):
        return self.open

    def send(self, text):
        self.frames.append(json.loads(text))

    def of_type(self, message_type):
        return [f for f in self.frames if f["type"] == message_type]

    @property
    def last(self):
        return self.frames[-1]


def frame(message_type, **payload):
    return json.dumps({"type": message_type, **payload})


def assert_consistent(coordinator):
    """Every live client is in at most one of {waiting, paired}; pairs are symmetric."""
    for handle in coordinator.clients:
        waiting = handle in coordinator.queue
        paired = handle in coordinator.pairs
        assert not (waiting and paired), handle
        if paired:
            partner = coordinator.pairs.partner_of(handle)
            assert coordinator.pairs.partner_of(partner) is handle
        if coordinator.timers.timer_for(handle) is not None:
            assert paired, handle
    assert len(coordinator.queue.waiting()) == len(set(coordinator.queue.waiting()))


@pytest.fixture
def coordinator():
    return SessionCoordinator(escalation_delay_ms=10, rng=random.Random(7))


@pytest.fixture
def connect(coordinator):
    """Connects a fake client and returns ``(handle, channel)``."""

    def _connect(client_id=None):
        channel = FakeChannel()
        handle = coordinator.on_connect(channel, client_id=client_id)
        return handle, channel

    return _connect
