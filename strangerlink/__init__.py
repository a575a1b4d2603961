"""Anonymous stranger matchmaking and WebRTC signal relay."""

from strangerlink.coordinator import SessionCoordinator

__all__ = ["SessionCoordinator"]
__version__ = "0.1.0"
