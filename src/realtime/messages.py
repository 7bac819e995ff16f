"""
Trikono - Transport Messages

Pydantic schemas for the messages carried over realtime channels. Every
message is a dict with a `type` discriminator. Replicas send join/place/
draw/pass/leave to the host tagged with their `peerId`; the host answers with
lobby/state/error messages on each replica's own topic.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from src.database.models import PlayerSnapshot
from src.engine.actions import Action, DrawTile, PassTurn, PlaceTile

_WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


# -- Replica -> host -----------------------------------------------------

class _Inbound(BaseModel):
    peer_id: str

    model_config = _WIRE_CONFIG

    def to_action(self, player_index: int) -> Action | None:
        """Engine action for this message, or None for lobby messages."""
        return None


class JoinMessage(_Inbound):
    type: Literal["join"]
    name: str = Field(default="Player", max_length=30)


class PlaceMessage(_Inbound):
    type: Literal["place"]
    tile_index: int
    row: int
    col: int
    rotation: int

    def to_action(self, player_index: int) -> Action:
        return PlaceTile(
            player_index=player_index,
            hand_index=self.tile_index,
            row=self.row,
            col=self.col,
            rotation=self.rotation,
        )


class DrawMessage(_Inbound):
    type: Literal["draw"]

    def to_action(self, player_index: int) -> Action:
        return DrawTile(player_index=player_index)


class PassMessage(_Inbound):
    type: Literal["pass"]

    def to_action(self, player_index: int) -> Action:
        return PassTurn(player_index=player_index)


class LeaveMessage(_Inbound):
    """The peer is closing its connection."""
    type: Literal["leave"]


InboundMessage = Annotated[
    Union[JoinMessage, PlaceMessage, DrawMessage, PassMessage, LeaveMessage],
    Field(discriminator="type"),
]


# -- Host -> replica -----------------------------------------------------

class LobbyPlayer(BaseModel):
    id: str
    name: str


class LobbyMessage(BaseModel):
    type: Literal["lobby"] = "lobby"
    players: list[LobbyPlayer] = Field(default_factory=list)

    model_config = _WIRE_CONFIG


class StateMessage(BaseModel):
    type: Literal["state"] = "state"
    state: PlayerSnapshot

    model_config = _WIRE_CONFIG


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str

    model_config = _WIRE_CONFIG


OutboundMessage = Annotated[
    Union[LobbyMessage, StateMessage, ErrorMessage],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)
_outbound_adapter: TypeAdapter[OutboundMessage] = TypeAdapter(OutboundMessage)


def parse_inbound(data: dict[str, Any]) -> InboundMessage:
    """Validate a replica message. Raises pydantic.ValidationError."""
    return _inbound_adapter.validate_python(data)


def parse_outbound(data: dict[str, Any]) -> OutboundMessage:
    """Validate a host message. Raises pydantic.ValidationError."""
    return _outbound_adapter.validate_python(data)


def dump(message: BaseModel) -> dict[str, Any]:
    """Serialize a message with its wire field names."""
    return message.model_dump(by_alias=True, mode="json")
