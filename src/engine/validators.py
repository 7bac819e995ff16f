"""
Trikono - Input Validation Utilities

Provides validation functions for game engine inputs. All validators
either return validated data or raise descriptive ValueError exceptions;
the game turns those into typed action errors.
"""

from typing import Any

from src.engine.base import Cell
from src.engine.tiles import ROTATIONS

MIN_PLAYERS = 2
MAX_PLAYERS = 4


def _require_int(value: Any, name: str) -> int:
    # bool is an int subclass; True must not address slot 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}.")
    return value


def validate_cell(row: Any, col: Any) -> Cell:
    """
    Validate lattice coordinates.

    Args:
        row: Row of the cell
        col: Column of the cell

    Returns:
        The Cell at (row, col)

    Raises:
        ValueError: If either coordinate is not an integer
    """
    return Cell(_require_int(row, "Row"), _require_int(col, "Column"))


def validate_rotation(rotation: Any) -> int:
    """
    Validate a tile rotation.

    Raises:
        ValueError: If rotation is not 0, 1 or 2
    """
    rotation = _require_int(rotation, "Rotation")
    if rotation not in ROTATIONS:
        raise ValueError(f"Rotation must be one of {ROTATIONS}, got {rotation}.")
    return rotation


def validate_hand_index(index: Any, hand_size: int) -> int:
    """
    Validate a slot index into a player's hand.

    Args:
        index: Slot being addressed
        hand_size: Number of tiles in the hand

    Returns:
        Validated index

    Raises:
        ValueError: If index is out of range
    """
    index = _require_int(index, "Hand index")
    if not (0 <= index < hand_size):
        raise ValueError(
            f"Hand index {index} is out of range for a hand of {hand_size} tiles."
        )
    return index


def validate_player_index(index: Any, player_count: int) -> int:
    """
    Validate a player index.

    Raises:
        ValueError: If index does not address a seated player
    """
    index = _require_int(index, "Player index")
    if not (0 <= index < player_count):
        raise ValueError(
            f"Player index {index} is out of range. Must be between 0 and {player_count - 1}."
        )
    return index


def validate_player_count(count: int, max_players: int = MAX_PLAYERS) -> int:
    """
    Validate number of players.

    Args:
        count: Number of players
        max_players: Upper bound for the table

    Returns:
        Validated count

    Raises:
        ValueError: If count is not between 2 and max_players
    """
    count = _require_int(count, "Player count")

    if not (MIN_PLAYERS <= count <= max_players):
        raise ValueError(f"Player count must be {MIN_PLAYERS}-{max_players}, got {count}.")

    return count
