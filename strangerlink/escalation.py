"""Delayed voice-to-video upgrade timers, one per pair."""

import asyncio
import logging

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 60000


class EscalationTimer:
    """A scheduled upgrade for one pair, shared by both of its members."""

    def __init__(self, pair_id, members, deadline, timer_handle=None):
        self.pair_id = pair_id
        self.members = members
        self.deadline = deadline
        self.timer_handle = timer_handle

    def __repr__(self):
        return f"<EscalationTimer pair={self.pair_id} deadline={self.deadline:.3f}>"


class EscalationTimers:
    """
    Schedules and cancels escalation timers on the running event loop.

    Timers are keyed by each member handle so either side can cancel. When a
    timer fires its bookkeeping is removed before ``on_fire`` runs, and
    ``on_fire`` receives the pair id and both members so it can re-check the
    pair registry instead of trusting the captured pair.
    """

    def __init__(self, loop=None):
        self._loop = loop
        self._timers = {}

    @property
    def loop(self):
        return self._loop or asyncio.get_running_loop()

    def schedule(self, pair_id, a, b, delay, on_fire):
        """Starts a one-shot timer firing ``on_fire(pair_id, a, b)`` after ``delay`` seconds."""
        self.cancel(a)
        self.cancel(b)
        loop = self.loop
        timer = EscalationTimer(pair_id, (a, b), loop.time() + delay)
        timer.timer_handle = loop.call_later(delay, self._fire, timer, on_fire)
        self._timers[a] = self._timers[b] = timer
        logger.debug("Scheduled escalation for pair %d in %.3fs", pair_id, delay)
        return timer

    def _fire(self, timer, on_fire):
        for member in timer.members:
            if self._timers.get(member) is timer:
                del self._timers[member]
        on_fire(timer.pair_id, *timer.members)

    def cancel(self, handle):
        timer = self._timers.pop(handle, None)
        if timer is None:
            return False
        timer.timer_handle.cancel()
        for member in timer.members:
            if self._timers.get(member) is timer:
                del self._timers[member]
        logger.debug("Cancelled escalation for pair %d", timer.pair_id)
        return True

    def timer_for(self, handle):
        return self._timers.get(handle)

    def __len__(self):
        # Live timers, each shared by two members.
        return len({id(t) for t in self._timers.values()})
