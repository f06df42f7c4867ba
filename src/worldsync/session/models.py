"""Session protocol models.

Inbound packets are validated with pydantic; unknown fields are ignored so
newer servers keep working. Outbound packets are built from models and
dumped by alias.

Usage:
    packet = parse_packet({"cmd": "ReceivedItems", "index": 0, "items": []})
    wire = LocationChecks(locations=[5505024]).to_wire()
"""

from __future__ import annotations

from enum import Enum, IntEnum, auto
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from worldsync.errors import ProtocolError


class ConnectionStatus(Enum):
    """Linear connection state machine. Socket loss returns to DISCONNECTED."""

    DISCONNECTED = auto()
    SOCKET_CONNECTING = auto()
    SOCKET_CONNECTED = auto()
    ROOM_INFO = auto()
    SLOT_CONNECTED = auto()


STATUS_TEXT: dict[ConnectionStatus, str] = {
    ConnectionStatus.DISCONNECTED: "disconnected",
    ConnectionStatus.SOCKET_CONNECTING: "connecting",
    ConnectionStatus.SOCKET_CONNECTED: "socket connected",
    ConnectionStatus.ROOM_INFO: "room info received",
    ConnectionStatus.SLOT_CONNECTED: "slot connected",
}


class ClientStatus(IntEnum):
    """Status values reported upstream with StatusUpdate."""

    UNKNOWN = 0
    CONNECTED = 5
    READY = 10
    PLAYING = 20
    GOAL = 30


class _Packet(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# Shared structures


class NetworkItem(_Packet):
    item: int
    location: int = 0
    player: int = 0
    flags: int = 0


class NetworkPlayer(_Packet):
    team: int = 0
    slot: int
    alias: str = ""
    name: str = ""


class NetworkSlot(_Packet):
    name: str = ""
    game: str = ""
    type: int = 0


class NetworkVersion(_Packet):
    major: int = 0
    minor: int = 5
    build: int = 1
    class_: str = Field(default="Version", alias="class")


class JSONMessagePart(_Packet):
    type: str | None = None
    text: str = ""
    color: str | None = None
    flags: int = 0
    player: int = 0


class GameData(_Packet):
    item_name_to_id: dict[str, int] = Field(default_factory=dict)
    location_name_to_id: dict[str, int] = Field(default_factory=dict)


class DataPackageContents(_Packet):
    games: dict[str, GameData] = Field(default_factory=dict)


# Inbound


class RoomInfo(_Packet):
    cmd: Literal["RoomInfo"]
    games: list[str] = Field(default_factory=list)
    password: bool = False
    version: NetworkVersion | None = None


class Connected(_Packet):
    cmd: Literal["Connected"]
    team: int = 0
    slot: int = 0
    players: list[NetworkPlayer] = Field(default_factory=list)
    missing_locations: list[int] = Field(default_factory=list)
    checked_locations: list[int] = Field(default_factory=list)
    slot_data: dict[str, Any] | None = None
    slot_info: dict[int, NetworkSlot] = Field(default_factory=dict)


class ConnectionRefused(_Packet):
    cmd: Literal["ConnectionRefused"]
    errors: list[str] = Field(default_factory=list)


class ReceivedItems(_Packet):
    cmd: Literal["ReceivedItems"]
    index: int = 0
    items: list[NetworkItem] = Field(default_factory=list)


class RoomUpdate(_Packet):
    cmd: Literal["RoomUpdate"]
    checked_locations: list[int] = Field(default_factory=list)
    players: list[NetworkPlayer] | None = None


class PrintJSON(_Packet):
    cmd: Literal["PrintJSON"]
    type: str | None = None
    data: list[JSONMessagePart] = Field(default_factory=list)
    receiving: int | None = None
    item: NetworkItem | None = None


class DataPackage(_Packet):
    cmd: Literal["DataPackage"]
    data: DataPackageContents = Field(default_factory=DataPackageContents)


InboundPacket = Annotated[
    RoomInfo | Connected | ConnectionRefused | ReceivedItems | RoomUpdate | PrintJSON | DataPackage,
    Field(discriminator="cmd"),
]

_INBOUND_COMMANDS = frozenset(
    {"RoomInfo", "Connected", "ConnectionRefused", "ReceivedItems", "RoomUpdate", "PrintJSON", "DataPackage"}
)
_inbound_adapter: TypeAdapter[Any] = TypeAdapter(InboundPacket)


def parse_packet(raw: Any) -> BaseModel | None:
    """Decode one inbound packet.

    Args:
        raw: A single packet object from an inbound message array.

    Returns:
        The typed packet, or None for commands this client does not handle.

    Raises:
        ProtocolError: If the packet is not an object or fails validation.
    """
    if not isinstance(raw, dict):
        raise ProtocolError(f"Expected packet object, got {type(raw).__name__}")
    if raw.get("cmd") not in _INBOUND_COMMANDS:
        return None
    try:
        return _inbound_adapter.validate_python(raw)  # type: ignore[no-any-return]
    except ValidationError as e:
        raise ProtocolError(f"Malformed {raw.get('cmd')} packet: {e}") from e


# Outbound


class _Outbound(_Packet):
    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Connect(_Outbound):
    cmd: Literal["Connect"] = "Connect"
    password: str = ""
    game: str
    name: str
    uuid: str
    version: NetworkVersion = Field(default_factory=NetworkVersion)
    items_handling: int = 0b111
    tags: list[str] = Field(default_factory=list)
    slot_data: bool = True


class LocationChecks(_Outbound):
    cmd: Literal["LocationChecks"] = "LocationChecks"
    locations: list[int]


class StatusUpdate(_Outbound):
    cmd: Literal["StatusUpdate"] = "StatusUpdate"
    status: ClientStatus


class GetDataPackage(_Outbound):
    cmd: Literal["GetDataPackage"] = "GetDataPackage"
    games: list[str] = Field(default_factory=list)


class Sync(_Outbound):
    cmd: Literal["Sync"] = "Sync"
