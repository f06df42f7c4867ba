"""Session protocol client, transport and session state.

Architecture Note:
    session/ holds everything that mirrors the server: the connection state
    machine, the wire models, and the granted/checked sets. It never touches
    the game world directly; world/ reads the state this package maintains.
"""

from worldsync.session.client import SessionClient, load_or_create_uuid
from worldsync.session.models import ClientStatus, ConnectionStatus, parse_packet
from worldsync.session.protocol import Transport, TransportEvent, TransportEventKind
from worldsync.session.state import SessionState
from worldsync.session.transport import RetryPolicy, WebSocketTransport

__all__ = [
    "SessionClient",
    "SessionState",
    "ConnectionStatus",
    "ClientStatus",
    "parse_packet",
    "load_or_create_uuid",
    "Transport",
    "TransportEvent",
    "TransportEventKind",
    "WebSocketTransport",
    "RetryPolicy",
]
