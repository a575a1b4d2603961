import logging
from collections import deque

from strangerlink.protocol import Mode

logger = logging.getLogger(__name__)

# Key used for every entry when the queue is not partitioned by mode.
_ANY = "any"


class PairingQueue:
    """
    FIFO waiting pool, optionally partitioned by mode.

    Stale entries (socket no longer open, or already paired) are only
    discarded when a match is attempted, so each ``try_match`` scans the
    head of the queue until it finds a live entry. The scan cost is
    proportional to the number of stale entries ahead of it.
    """

    def __init__(self, pairs, partitioned=True):
        self._pairs = pairs
        self.partitioned = partitioned
        self._queues = {}

    def _key(self, mode):
        return Mode(mode).value if self.partitioned else _ANY

    def _queue(self, mode):
        return self._queues.setdefault(self._key(mode), deque())

    def enqueue(self, handle, mode):
        if handle in self or handle in self._pairs:
            logger.debug("Ignoring enqueue of %s: already waiting or paired", handle.client_id)
            return
        self._queue(mode).append(handle)

    def try_match(self, mode, exclude=()):
        """
        Pops and returns the oldest live entry waiting for ``mode``.

        Entries listed in ``exclude`` are skipped but keep their position.
        Returns None when nobody suitable is waiting.
        """
        queue = self._queue(mode)
        skipped = []
        match = None
        while queue:
            candidate = queue.popleft()
            if not candidate.is_open() or candidate in self._pairs:
                logger.debug("Dropping stale queue entry %s", candidate.client_id)
                continue
            if candidate in exclude:
                skipped.append(candidate)
                continue
            match = candidate
            break
        queue.extendleft(reversed(skipped))
        return match

    def remove(self, handle):
        for queue in self._queues.values():
            try:
                queue.remove(handle)
            except ValueError:
                pass

    def waiting(self, mode=None):
        """Snapshot of waiting handles, oldest first."""
        if mode is not None:
            return list(self._queues.get(self._key(mode), ()))
        return [h for queue in self._queues.values() for h in queue]

    def __contains__(self, handle):
        return any(handle in queue for queue in self._queues.values())

    def __len__(self):
        return sum(len(queue) for queue in self._queues.values())
