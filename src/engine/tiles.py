"""
Trikono - Tile Catalog

The fixed universe of 56 tiles (every multiset of three numbers drawn from
0-5) and the pure helpers used to orient, sum and classify them.
"""

import random
from typing import Sequence

from src.engine.base import TileDefinition

MIN_VALUE = 0
MAX_VALUE = 5
ROTATIONS = (0, 1, 2)


def generate_all() -> tuple[TileDefinition, ...]:
    """
    Generate the 56 canonical tiles.

    Values are sorted ascending and ids follow lexicographic generation order,
    so (0,0,0) is id 0 and (5,5,5) is id 55.
    """
    tiles = []
    tile_id = 0
    for a in range(MIN_VALUE, MAX_VALUE + 1):
        for b in range(a, MAX_VALUE + 1):
            for c in range(b, MAX_VALUE + 1):
                tiles.append(TileDefinition(id=tile_id, values=(a, b, c)))
                tile_id += 1
    return tuple(tiles)


ALL_TILES: tuple[TileDefinition, ...] = generate_all()

_TILES_BY_ID: dict[int, TileDefinition] = {tile.id: tile for tile in ALL_TILES}


def tile_by_id(tile_id: int) -> TileDefinition:
    """Look up a catalog tile, raising ValueError for unknown ids."""
    try:
        return _TILES_BY_ID[tile_id]
    except KeyError:
        raise ValueError(f"Unknown tile id {tile_id}.") from None


def orient(values: Sequence[int], rotation: int) -> tuple[int, int, int]:
    """
    Return the corner values of a tile placed with the given rotation.

    Up cells index corners [Top, BottomRight, BottomLeft]; down cells index
    [Bottom, TopLeft, TopRight]. Turning an up triangle into a down one is a
    180 degree rotation, not a mirror, so the same three cyclic permutations
    serve both orientations.

    Args:
        values: Canonical (a, b, c) tile values
        rotation: 0, 1 or 2

    Returns:
        (a, b, c), (c, a, b) or (b, c, a)

    Raises:
        ValueError: If rotation is not 0, 1 or 2
    """
    a, b, c = values
    if rotation == 0:
        return (a, b, c)
    if rotation == 1:
        return (c, a, b)
    if rotation == 2:
        return (b, c, a)
    raise ValueError(f"Rotation must be 0, 1 or 2, got {rotation!r}.")


def tile_sum(values: Sequence[int]) -> int:
    return values[0] + values[1] + values[2]


def is_triple(values: Sequence[int]) -> bool:
    return values[0] == values[1] == values[2]


def shuffled(
    tiles: Sequence[TileDefinition],
    rng: random.Random | None = None,
) -> list[TileDefinition]:
    """Fisher-Yates shuffle into a new list."""
    rng = rng or random.Random()
    out = list(tiles)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out
