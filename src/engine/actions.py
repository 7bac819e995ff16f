"""
Trikono - Player Actions

The closed set of actions a player can take on their turn. Each variant
carries exactly the fields it needs; Game.apply dispatches on the type.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class PlaceTile:
    """Put the tile in hand slot `hand_index` at (row, col) with `rotation`."""
    player_index: int
    hand_index: int
    row: int
    col: int
    rotation: int


@dataclass(frozen=True)
class DrawTile:
    """Take one tile from the pool."""
    player_index: int


@dataclass(frozen=True)
class PassTurn:
    """Give up the turn after drawing (or when the pool is empty)."""
    player_index: int


Action = Union[PlaceTile, DrawTile, PassTurn]
