"""Game client adapters."""

from .loopback import LoopbackTransport
from .transport import GameTransport, TransportFactory, TransportSignal

__all__ = [
    "GameTransport",
    "LoopbackTransport",
    "TransportFactory",
    "TransportSignal",
]
