"""
Trikono Game Engine.

Pure Python game logic with zero UI/network/database dependencies.
Handles the tile catalog, triangular adjacency, placement legality,
bonus scoring and the turn/phase state machine.
"""

from src.engine.actions import Action, DrawTile, PassTurn, PlaceTile
from src.engine.base import (
    ActionError,
    ActionResult,
    Cell,
    GamePhase,
    LastAction,
    Orientation,
    PlacedTile,
    Placement,
    ScoringBreakdown,
    ScoringCategory,
    ScoringResult,
    TileDefinition,
)
from src.engine.board import Board
from src.engine.game import Game, Player
from src.engine.tiles import ALL_TILES, generate_all, is_triple, orient, tile_sum

__all__ = [
    # Data Classes
    "Cell",
    "LastAction",
    "PlacedTile",
    "Placement",
    "ScoringBreakdown",
    "ScoringResult",
    "TileDefinition",
    "ActionResult",
    # Enums
    "ActionError",
    "GamePhase",
    "Orientation",
    "ScoringCategory",
    # Actions
    "Action",
    "DrawTile",
    "PassTurn",
    "PlaceTile",
    # Catalog
    "ALL_TILES",
    "generate_all",
    "is_triple",
    "orient",
    "tile_sum",
    # Engine
    "Board",
    "Game",
    "Player",
]
