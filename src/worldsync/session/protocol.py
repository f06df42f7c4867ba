"""Transport protocol for swappable session channels.

The session client never touches sockets directly. A transport delivers
inbound traffic as a list of events each time it is polled, which keeps
the client's handlers on the caller's thread even when the transport reads
on a background thread.

Usage:
    transport = WebSocketTransport()
    client = SessionClient(settings, state, table, transport)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Protocol, runtime_checkable


class TransportEventKind(Enum):
    OPENED = auto()
    MESSAGE = auto()
    ERROR = auto()
    CLOSED = auto()


@dataclass(slots=True)
class TransportEvent:
    """One inbound transport event.

    Attributes:
        kind: What happened.
        packets: Decoded packet objects for MESSAGE events.
        reason: Error or close reason text.
    """

    kind: TransportEventKind
    packets: list[Any] = field(default_factory=list)
    reason: str = ""

    @classmethod
    def opened(cls) -> TransportEvent:
        return cls(TransportEventKind.OPENED)

    @classmethod
    def message(cls, packets: list[Any]) -> TransportEvent:
        return cls(TransportEventKind.MESSAGE, packets=packets)

    @classmethod
    def error(cls, reason: str) -> TransportEvent:
        return cls(TransportEventKind.ERROR, reason=reason)

    @classmethod
    def closed(cls, reason: str = "") -> TransportEvent:
        return cls(TransportEventKind.CLOSED, reason=reason)


@runtime_checkable
class Transport(Protocol):
    """Bidirectional message channel to the session server.

    Implementations must not block in ``poll``. Every ``open`` that does not
    end in OPENED must eventually yield a CLOSED event, unless ``close`` runs first.
    """

    def open(self, url: str) -> None:
        """Start connecting. Completion is reported through ``poll``."""
        ...

    def send(self, packets: list[dict[str, Any]]) -> None:
        """Send one message containing the given packets.

        Raises:
            TransportError: If the channel is not open or the write fails.
        """
        ...

    def poll(self) -> list[TransportEvent]:
        """Return all events received since the last call, in arrival order."""
        ...

    def close(self) -> None:
        """Close the channel. Safe to call when already closed."""
        ...
