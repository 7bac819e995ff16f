"""
Trikono - Game Engine Base Classes

This module defines the foundational data structures and enums used throughout
the game engine. Value types are immutable (frozen dataclasses) so they can be
shared freely between the board, the game and any snapshot built from them.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class Orientation(Enum):
    """Which way a triangular cell points."""
    UP = "up"
    DOWN = "down"


class GamePhase(Enum):
    """Lifecycle of a game. FINISHED is terminal."""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class ActionError(Enum):
    """Typed failures returned by game actions."""
    GAME_NOT_IN_PROGRESS = "game_not_in_progress"
    NOT_YOUR_TURN = "not_your_turn"
    INVALID_TILE = "invalid_tile"
    INVALID_PLACEMENT = "invalid_placement"
    POOL_EMPTY = "pool_empty"
    MUST_DRAW_FIRST = "must_draw_first"
    HAS_VALID_PLACEMENT = "has_valid_placement"

    @property
    def message(self) -> str:
        """Human-readable text for the player who caused the error."""
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES: dict[ActionError, str] = {
    ActionError.GAME_NOT_IN_PROGRESS: "Game is not in progress.",
    ActionError.NOT_YOUR_TURN: "Not your turn.",
    ActionError.INVALID_TILE: "Invalid tile.",
    ActionError.INVALID_PLACEMENT: "Invalid placement.",
    ActionError.POOL_EMPTY: "Pool is empty.",
    ActionError.MUST_DRAW_FIRST: "Draw a tile first.",
    ActionError.HAS_VALID_PLACEMENT: "You have valid placements, play a tile!",
}


class ScoringCategory(Enum):
    """Categories of points awarded for a placement."""
    BASE = auto()           # sum of the three corners
    TRIPLE = auto()         # a-a-a, sum + 10
    ZERO_TRIPLE = auto()    # 0-0-0, flat 40
    BRIDGE = auto()
    HEXAGON = auto()        # one completed hexagon
    DOUBLE_HEXAGON = auto()
    TRIPLE_HEXAGON = auto()


@dataclass(frozen=True)
class TileDefinition:
    """
    One of the 56 canonical tiles.

    Attributes:
        id: Position in catalog generation order
        values: Corner numbers sorted ascending, each 0-5
    """
    id: int
    values: tuple[int, int, int]

    def __post_init__(self) -> None:
        """Validate the canonical corner triple."""
        if len(self.values) != 3:
            raise ValueError(f"Tile must have exactly 3 values, got {len(self.values)}.")
        a, b, c = self.values
        if not (0 <= a <= b <= c <= 5):
            raise ValueError(
                f"Tile values {self.values} must be sorted and between 0 and 5."
            )

    @property
    def total(self) -> int:
        return sum(self.values)

    @property
    def is_triple(self) -> bool:
        return self.values[0] == self.values[1] == self.values[2]

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire format."""
        return {"id": self.id, "values": list(self.values)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TileDefinition":
        """Create a TileDefinition from wire format."""
        return cls(id=int(data["id"]), values=tuple(data["values"]))


@dataclass(frozen=True)
class Cell:
    """
    A triangular lattice position.

    Orientation is derived from parity: even (row + col) points up.
    """
    row: int
    col: int

    @property
    def orientation(self) -> Orientation:
        return Orientation.UP if (self.row + self.col) % 2 == 0 else Orientation.DOWN

    @property
    def is_up(self) -> bool:
        return self.orientation is Orientation.UP

    def offset(self, dr: int, dc: int) -> "Cell":
        return Cell(self.row + dr, self.col + dc)

    @property
    def key(self) -> str:
        """Stable string key used on the wire."""
        return f"{self.row},{self.col}"

    @classmethod
    def from_key(cls, key: str) -> "Cell":
        """Parse a "row,col" wire key."""
        try:
            row, col = key.split(",")
            return cls(int(row), int(col))
        except ValueError:
            raise ValueError(f"Invalid cell key {key!r}, expected 'row,col'.") from None


@dataclass(frozen=True)
class PlacedTile:
    """
    A tile committed to the board.

    Attributes:
        values: Corner values rotated into board orientation
        tile_id: Catalog id of the tile
        player_id: Index of the player who placed it
    """
    values: tuple[int, int, int]
    tile_id: int
    player_id: int

    def to_dict(self) -> dict[str, Any]:
        return {"values": list(self.values), "tileId": self.tile_id, "playerId": self.player_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlacedTile":
        values = tuple(data["values"])
        if len(values) != 3:
            raise ValueError(f"Placed tile must have 3 values, got {len(values)}.")
        return cls(values=values, tile_id=int(data["tileId"]), player_id=int(data["playerId"]))


@dataclass(frozen=True)
class Placement:
    """A legal way to put a tile on the board."""
    cell: Cell
    rotation: int
    values: tuple[int, int, int]


@dataclass(frozen=True)
class ScoringBreakdown:
    """
    A single scoring component of a placement.

    Attributes:
        category: The kind of points awarded
        points: Points for this component
        description: Human-readable description
    """
    category: ScoringCategory
    points: int
    description: str


@dataclass(frozen=True)
class ScoringResult:
    """
    Complete scoring result for one placement.

    Attributes:
        points: Total points scored
        breakdown: Individual scoring components
        hexagons_completed: Number of the tile's vertices whose hexagon is now full
        is_bridge: Whether the bridge bonus applied
    """
    points: int
    breakdown: tuple[ScoringBreakdown, ...]
    hexagons_completed: int = 0
    is_bridge: bool = False

    def __str__(self) -> str:
        lines = [f"Total: {self.points} points"]
        for item in self.breakdown:
            lines.append(f"  - {item.description}: {item.points}")
        return "\n".join(lines)


@dataclass(frozen=True)
class LastAction:
    """Most recent committed action, kept for UI and logs only."""
    type: str
    player: int
    row: int | None = None
    col: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "player": self.player}
        if self.row is not None:
            data["row"] = self.row
            data["col"] = self.col
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "LastAction | None":
        if not data:
            return None
        return cls(
            type=str(data["type"]),
            player=int(data["player"]),
            row=data.get("row"),
            col=data.get("col"),
        )


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of a game action.

    Rejected actions carry an error and leave the game untouched.
    """
    success: bool
    error: ActionError | None = None
    score: int | None = None
    game_over: bool = False
    winner: int | None = None
    tile: TileDefinition | None = None
    pool_size: int | None = None
    scoring: ScoringResult | None = field(default=None, compare=False)

    @classmethod
    def fail(cls, error: ActionError) -> "ActionResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the result record sent back to callers."""
        data: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            data["error"] = self.error.message
        if self.score is not None:
            data["score"] = self.score
        if self.game_over:
            data["gameOver"] = True
            data["winner"] = self.winner
        if self.tile is not None:
            data["tile"] = self.tile.to_dict()
        if self.pool_size is not None:
            data["poolSize"] = self.pool_size
        return data
