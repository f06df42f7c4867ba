"""Exception hierarchy.

Most failures in this package are contained and logged rather than raised:
unresolvable identifiers come back as ``None`` and collaborator calls report
"unavailable" through their return values. These exceptions cover the few
places where a caller needs to see a failure.
"""


class WorldSyncError(Exception):
    """Base class for all worldsync errors."""

    pass


class ProtocolError(WorldSyncError):
    """Raised when an inbound packet cannot be decoded."""

    pass


class TransportError(WorldSyncError):
    """Raised by transports for socket-level failures."""

    pass
