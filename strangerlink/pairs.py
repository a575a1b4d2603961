import itertools
import logging

logger = logging.getLogger(__name__)


class PairRegistry:
    """Symmetric map from each paired handle to its partner."""

    def __init__(self):
        self._partners = {}
        self._pair_ids = {}
        self._ids = itertools.count(1)

    def link(self, a, b):
        """Installs both directions and returns the new pair id."""
        if a is b:
            raise ValueError("cannot pair a client with itself")
        if a in self or b in self:
            raise ValueError("client is already paired")
        pair_id = next(self._ids)
        self._partners[a] = b
        self._partners[b] = a
        self._pair_ids[a] = self._pair_ids[b] = pair_id
        logger.debug("Linked pair %d: %s <-> %s", pair_id, a.client_id, b.client_id)
        return pair_id

    def partner_of(self, handle):
        return self._partners.get(handle)

    def pair_id_of(self, handle):
        return self._pair_ids.get(handle)

    def is_linked(self, pair_id, a, b):
        """True iff ``a`` and ``b`` are still mutually paired under ``pair_id``."""
        return (
            self._partners.get(a) is b
            and self._partners.get(b) is a
            and self._pair_ids.get(a) == pair_id
        )

    def unlink(self, handle):
        """Removes the pair containing ``handle``; returns the partner or None."""
        partner = self._partners.pop(handle, None)
        if partner is None:
            return None
        self._partners.pop(partner, None)
        pair_id = self._pair_ids.pop(handle, None)
        self._pair_ids.pop(partner, None)
        logger.debug("Unlinked pair %s: %s <-> %s", pair_id, handle.client_id, partner.client_id)
        return partner

    def __contains__(self, handle):
        return handle in self._partners

    def __len__(self):
        # Number of pairs, not directed entries.
        return len(self._partners) // 2
