"""
Trikono - Database Models

Pydantic models for the snapshot records exchanged between a host and its
replicas, and for the `game_snapshots` table that stores them. Snapshot
fields use the camelCase wire names; Python code uses snake_case.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


class TileModel(BaseModel):
    """A catalog tile: `{id, values}`."""

    id: int = Field(ge=0, le=55)
    values: list[int] = Field(min_length=3, max_length=3)

    model_config = _WIRE_CONFIG


class PlacedTileModel(BaseModel):
    """A board cell entry: `{values, tileId, playerId}`."""

    values: list[int] = Field(min_length=3, max_length=3)
    tile_id: int
    player_id: int

    model_config = _WIRE_CONFIG


class LastActionModel(BaseModel):
    type: Literal["place", "draw", "pass"]
    player: int
    row: int | None = None
    col: int | None = None

    model_config = _WIRE_CONFIG


class PublicPlayerModel(BaseModel):
    """What every player may see about every other player."""

    id: str
    name: str
    tile_count: int = Field(ge=0)
    score: int

    model_config = _WIRE_CONFIG


class FullPlayerModel(BaseModel):
    """A player record including the hand, for host save/restore."""

    id: str
    name: str
    tiles: list[TileModel] = Field(default_factory=list)
    score: int = 0

    model_config = _WIRE_CONFIG


class _SnapshotBase(BaseModel):
    board: dict[str, PlacedTileModel] = Field(default_factory=dict)
    current_player_index: int = 0
    phase: Literal["waiting", "playing", "finished"] = "waiting"
    winner: int | None = None
    drawn_this_turn: bool = False
    last_action: LastActionModel | None = None

    model_config = _WIRE_CONFIG

    @field_validator("winner")
    @classmethod
    def _no_winner(cls, value: int | None) -> int | None:
        # Older hosts send -1 for "no winner"
        if value is not None and value < 0:
            return None
        return value


class PlayerSnapshot(_SnapshotBase):
    """Personalised projection sent to one replica."""

    players: list[PublicPlayerModel] = Field(default_factory=list)
    pool_size: int = Field(default=0, ge=0)
    your_index: int
    your_tiles: list[TileModel] = Field(default_factory=list)


class FullSnapshot(_SnapshotBase):
    """Complete canonical state, including every hand and the pool order."""

    players: list[FullPlayerModel] = Field(default_factory=list)
    pool: list[TileModel] = Field(default_factory=list)


class GameSnapshotRecord(BaseModel):
    """Mirrors the `game_snapshots` table."""

    game_id: str
    state: FullSnapshot
    version: int = 0
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
