"""
Trikono - Realtime Event Definitions

Event types and payloads for multiplayer game state changes, plus the
classifiers that turn committed actions (host side) and snapshot changes
(replica side) into events for the UI layer.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from src.database.models import PlayerSnapshot
from src.engine.actions import Action, DrawTile, PassTurn, PlaceTile
from src.engine.base import ActionResult


class GameEvent(Enum):
    """Events that can occur during a game."""

    PLAYER_JOINED = auto()
    PLAYER_LEFT = auto()
    GAME_STARTED = auto()
    TILE_PLACED = auto()
    TILE_DRAWN = auto()
    TURN_PASSED = auto()
    GAME_WON = auto()
    STATE_UPDATED = auto()
    ACTION_REJECTED = auto()


@dataclass
class EventPayload:
    """Wrapper for realtime event data."""

    event: GameEvent
    game_id: str
    player_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


_ACTION_EVENT_MAP: dict[type, GameEvent] = {
    PlaceTile: GameEvent.TILE_PLACED,
    DrawTile: GameEvent.TILE_DRAWN,
    PassTurn: GameEvent.TURN_PASSED,
}

_LAST_ACTION_EVENT_MAP: dict[str, GameEvent] = {
    "place": GameEvent.TILE_PLACED,
    "draw": GameEvent.TILE_DRAWN,
    "pass": GameEvent.TURN_PASSED,
}


def classify_action(action: Action, result: ActionResult) -> GameEvent:
    """Determine the game event produced by an action on the host."""
    if not result.success:
        return GameEvent.ACTION_REJECTED
    if result.game_over:
        return GameEvent.GAME_WON
    return _ACTION_EVENT_MAP[type(action)]


def classify_snapshot_change(
    snapshot: PlayerSnapshot, previous: PlayerSnapshot | None
) -> GameEvent | None:
    """Determine the game event from two consecutive snapshots on a replica."""
    if previous is None:
        if snapshot.phase == "playing":
            return GameEvent.GAME_STARTED
        return GameEvent.STATE_UPDATED

    if snapshot.phase != previous.phase:
        if snapshot.phase == "playing":
            return GameEvent.GAME_STARTED
        if snapshot.phase == "finished":
            return GameEvent.GAME_WON

    if snapshot.last_action is not None and snapshot.last_action != previous.last_action:
        return _LAST_ACTION_EVENT_MAP[snapshot.last_action.type]
    # Repeated draws leave last_action unchanged
    if snapshot.pool_size < previous.pool_size:
        return GameEvent.TILE_DRAWN

    if len(snapshot.players) > len(previous.players):
        return GameEvent.PLAYER_JOINED
    if len(snapshot.players) < len(previous.players):
        return GameEvent.PLAYER_LEFT

    if snapshot != previous:
        return GameEvent.STATE_UPDATED
    return None
