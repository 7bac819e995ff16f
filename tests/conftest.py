"""
Trikono - Test Configuration and Fixtures

Common fixtures and builders for all test modules.
"""

import random
from typing import Any, Callable, Iterable, Sequence

import pytest

from src.engine.base import Cell
from src.engine.board import Board
from src.engine.game import Game
from src.engine.tiles import ALL_TILES

# Every corner of a 2-2-2 tile matches every corner of another one,
# so any connected set of cells can be filled with it legally.
TWOS = (2, 2, 2)
TWOS_ID = next(tile.id for tile in ALL_TILES if tile.values == TWOS)


def fill_board(board: Board, cells: Iterable[Cell], values: Sequence[int] = TWOS) -> None:
    """Place `values` on every cell, in an order that keeps each placement legal."""
    remaining = list(cells)
    while remaining:
        for cell in remaining:
            if board.is_valid(cell, values):
                board.place(cell, values, tile_id=TWOS_ID, player_id=0)
                remaining.remove(cell)
                break
        else:
            raise AssertionError(f"Cells {remaining} are not reachable from the board")


def tile_dict(values: Sequence[int]) -> dict[str, Any]:
    """Wire record for the catalog tile with these canonical values."""
    tile = next(t for t in ALL_TILES if t.values == tuple(values))
    return tile.to_dict()


def full_snapshot(
    hands: Sequence[Sequence[Sequence[int]]],
    *,
    board: dict[str, dict[str, Any]] | None = None,
    pool: Sequence[Sequence[int]] = (),
    scores: Sequence[int] | None = None,
    current: int = 0,
    phase: str = "playing",
    drawn: bool = False,
) -> dict[str, Any]:
    """Build a full snapshot for a rigged game."""
    scores = scores or [0] * len(hands)
    return {
        "board": board or {},
        "players": [
            {
                "id": f"p{i}",
                "name": f"Player {i + 1}",
                "tiles": [tile_dict(values) for values in hand],
                "score": scores[i],
            }
            for i, hand in enumerate(hands)
        ],
        "pool": [tile_dict(values) for values in pool],
        "currentPlayerIndex": current,
        "phase": phase,
        "winner": None,
        "drawnThisTurn": drawn,
        "lastAction": None,
    }


@pytest.fixture
def board() -> Board:
    return Board()


@pytest.fixture
def fill() -> Callable[..., None]:
    return fill_board


@pytest.fixture
def rigged_game() -> Callable[..., Game]:
    """Factory for games restored from a hand-built snapshot."""
    def build(hands, **kwargs) -> Game:
        return Game.from_full(full_snapshot(hands, **kwargs))
    return build


@pytest.fixture
def two_player_game() -> Game:
    """A started two-player game with a fixed shuffle."""
    game = Game(rng=random.Random(1234))
    game.start([("alice", "Alice"), ("bob", "Bob")])
    return game


@pytest.fixture
def four_player_game() -> Game:
    game = Game(rng=random.Random(99))
    game.start([(f"p{i}", f"Player {i + 1}") for i in range(4)])
    return game
