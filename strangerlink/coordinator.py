"""
Session coordinator: the per-client state machine.

Every public method handles one transport event to completion and never
awaits, so on a single event loop each call is atomic with respect to every
other client's events and to escalation timers.
"""

import logging
import random

from strangerlink.clients import ClientHandle, ClientRegistry, LifecycleState
from strangerlink.escalation import DEFAULT_DELAY_MS, EscalationTimers
from strangerlink.pairing import PairingQueue
from strangerlink.pairs import PairRegistry
from strangerlink.protocol import MessageType, Mode, ProtocolError, decode, encode

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Press Connect to start."
SEARCHING_TEXT = "Searching for a stranger..."
LEFT_TEXT = "You have disconnected. Press Connect to find a new stranger."
NO_PARTNER_TEXT = "No partner to signal. Press Connect to find a stranger."
PARTNER_LEFT_TEXT = "Stranger has disconnected."
ENABLE_VIDEO_TEXT = "Video is now available."


class SessionCoordinator:
    """
    Owns the client registry, pairing queue, pair registry and escalation
    timers for one server instance. Instances share no state, so several can
    run side by side (tests do exactly that).
    """

    def __init__(self, escalation_delay_ms=DEFAULT_DELAY_MS, partition_by_mode=True, rng=None, loop=None):
        self.escalation_delay = escalation_delay_ms / 1000.0
        self.clients = ClientRegistry()
        self.pairs = PairRegistry()
        self.queue = PairingQueue(self.pairs, partitioned=partition_by_mode)
        self.timers = EscalationTimers(loop=loop)
        self._rng = rng or random.Random()

    # --- Transport events ---

    def on_connect(self, channel, client_id=None):
        """Registers a new connection and returns its handle."""
        handle = ClientHandle(channel, client_id)
        self.clients.register(handle)
        logger.info("Client %s connected (%d online)", handle.client_id, len(self.clients))
        self._send(handle, MessageType.STATUS, message=WELCOME_TEXT)
        return handle

    def on_message(self, handle, frame):
        if handle not in self.clients:
            return
        try:
            message_type, data = decode(frame)
        except ProtocolError as e:
            logger.debug("Dropping frame from %s: %s", handle.client_id, e)
            return

        if message_type is MessageType.CONNECT:
            self._handle_connect(handle, data)
        elif message_type is MessageType.DISCONNECT:
            self._handle_disconnect(handle)
        elif message_type is MessageType.SIGNAL:
            self._handle_signal(handle, data)

    def on_close(self, handle):
        if handle in self.clients:
            logger.info("Client %s closed its connection", handle.client_id)
        self._drop(handle)

    def on_error(self, handle, exc=None):
        if handle in self.clients:
            logger.warning("Transport error for client %s: %r", handle.client_id, exc)
        self._drop(handle)

    # --- Protocol messages ---

    def _handle_connect(self, handle, data):
        mode = Mode.parse(data.get("mode"))
        former_partner = self._unpair(handle, requeue=True)
        self.queue.remove(handle)
        self.clients.set_mode(handle, mode)
        exclude = (former_partner,) if former_partner is not None else ()
        self._attempt_pair(handle, exclude=exclude)

    def _handle_disconnect(self, handle):
        if handle.state is LifecycleState.DISCONNECTED:
            return
        self._unpair(handle, requeue=False)
        self.queue.remove(handle)
        self.clients.set_state(handle, LifecycleState.DISCONNECTED)
        self._send(handle, MessageType.STATUS, message=LEFT_TEXT)
        logger.debug("Stats: %s", self.stats())

    def _handle_signal(self, handle, data):
        partner = self.pairs.partner_of(handle)
        if partner is not None:
            self._send(partner, MessageType.SIGNAL, signal=data.get("signal"))
            return

        # Partner may have vanished before its close event reached us.
        self._send(handle, MessageType.STATUS, message=NO_PARTNER_TEXT)
        self.timers.cancel(handle)
        if handle.state is LifecycleState.PAIRED:
            self.clients.set_state(handle, LifecycleState.IDLE)

    # --- Pairing ---

    def _attempt_pair(self, handle, exclude=()):
        partner = self.queue.try_match(handle.mode, exclude=exclude)
        if partner is None:
            self.queue.enqueue(handle, handle.mode)
            self.clients.set_state(handle, LifecycleState.WAITING)
            self._send(handle, MessageType.STATUS, message=SEARCHING_TEXT)
            return None

        pair_id = self.pairs.link(handle, partner)
        self.clients.set_state(handle, LifecycleState.PAIRED)
        self.clients.set_state(partner, LifecycleState.PAIRED)

        initiator = self._rng.random() < 0.5
        self._send(handle, MessageType.PAIR_FOUND, initiator=initiator)
        self._send(partner, MessageType.PAIR_FOUND, initiator=not initiator)
        logger.info("Paired %s with %s (pair %d)", handle.client_id, partner.client_id, pair_id)

        if Mode.VOICE in (handle.mode, partner.mode):
            self.timers.schedule(pair_id, handle, partner, self.escalation_delay, self._enable_video)
        logger.debug("Stats: %s", self.stats())
        return partner

    def _unpair(self, handle, requeue):
        """
        Dissolves the pair containing ``handle``, if any, and notifies the
        partner. With ``requeue`` the partner goes back to matching under its
        own recorded mode; otherwise it is left idle. Returns the partner.
        """
        self.timers.cancel(handle)
        partner = self.pairs.unlink(handle)
        if partner is None:
            return None

        logger.info("Unpaired %s from %s", handle.client_id, partner.client_id)
        self._send(partner, MessageType.DISCONNECTED, message=PARTNER_LEFT_TEXT)
        if requeue and partner.is_open():
            self._attempt_pair(partner)
        else:
            self.clients.set_state(partner, LifecycleState.IDLE)
        return partner

    def _enable_video(self, pair_id, a, b):
        if not self.pairs.is_linked(pair_id, a, b):
            logger.debug("Escalation for dissolved pair %d ignored", pair_id)
            return
        logger.info("Enabling video for pair %d", pair_id)
        self._send(a, MessageType.ENABLE_VIDEO, message=ENABLE_VIDEO_TEXT)
        self._send(b, MessageType.ENABLE_VIDEO, message=ENABLE_VIDEO_TEXT)

    def _drop(self, handle):
        if handle not in self.clients:
            return
        self._unpair(handle, requeue=True)
        self.queue.remove(handle)
        self.clients.set_state(handle, LifecycleState.DISCONNECTED)
        self.clients.forget(handle)
        logger.debug("Stats: %s", self.stats())

    # --- Helpers ---

    def _send(self, handle, message_type, **payload):
        handle.send(encode(message_type, **payload))

    def stats(self):
        return {
            "clients": len(self.clients),
            "waiting": len(self.queue),
            "pairs": len(self.pairs),
            "timers": len(self.timers),
        }
