"""
Trikono - Board

Sparse triangular lattice of placed tiles: adjacency rules, placement
legality, placement enumeration and bonus scoring.

Corner indices of a placed tile:
    UP   : [0]=Top     [1]=BottomRight  [2]=BottomLeft
    DOWN : [0]=Bottom  [1]=TopLeft      [2]=TopRight

Corners sit on lattice vertices (y, x). Every vertex is shared by six cells,
three pointing up and three pointing down, which together form a hexagon.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from src.engine.base import (
    Cell,
    Orientation,
    PlacedTile,
    Placement,
    ScoringBreakdown,
    ScoringCategory,
    ScoringResult,
)
from src.engine.tiles import ROTATIONS, is_triple, orient, tile_sum

ORIGIN = Cell(0, 0)

TRIPLE_BONUS = 10
ZERO_TRIPLE_SCORE = 40
BRIDGE_BONUS = 40
HEXAGON_BONUSES = {0: 0, 1: 50, 2: 60, 3: 70}


@dataclass(frozen=True)
class NeighborRule:
    """
    One edge shared with a neighbouring cell.

    Attributes:
        dr: Row offset of the neighbour
        dc: Column offset of the neighbour
        mine: My corner indices lying on the shared edge
        theirs: The neighbour's corner indices they must equal, pairwise
        opposite: My corner index not on the shared edge
    """
    dr: int
    dc: int
    mine: tuple[int, int]
    theirs: tuple[int, int]
    opposite: int


NEIGHBOR_RULES: dict[Orientation, tuple[NeighborRule, ...]] = {
    Orientation.UP: (
        NeighborRule(dr=0, dc=-1, mine=(0, 2), theirs=(2, 0), opposite=1),  # left
        NeighborRule(dr=0, dc=1, mine=(0, 1), theirs=(1, 0), opposite=2),   # right
        NeighborRule(dr=1, dc=0, mine=(2, 1), theirs=(1, 2), opposite=0),   # bottom
    ),
    Orientation.DOWN: (
        NeighborRule(dr=0, dc=-1, mine=(1, 0), theirs=(0, 1), opposite=2),  # left
        NeighborRule(dr=0, dc=1, mine=(2, 0), theirs=(0, 2), opposite=1),   # right
        NeighborRule(dr=-1, dc=0, mine=(1, 2), theirs=(2, 1), opposite=0),  # top
    ),
}

# Vertex (y, x) of each corner, relative to the cell's (row, col)
CORNER_VERTICES: dict[Orientation, tuple[tuple[int, int], ...]] = {
    Orientation.UP: ((0, 1), (1, 2), (1, 0)),
    Orientation.DOWN: ((1, 1), (0, 0), (0, 2)),
}

# Cells around vertex (y, x), relative to the vertex
HEXAGON_CELLS: tuple[tuple[int, int], ...] = (
    (-1, -2), (-1, -1), (-1, 0),
    (0, -2), (0, -1), (0, 0),
)


def corner_vertex(cell: Cell, corner: int) -> tuple[int, int]:
    """Lattice vertex under one corner of a cell."""
    dy, dx = CORNER_VERTICES[cell.orientation][corner]
    return (cell.row + dy, cell.col + dx)


def hexagon_around(vertex: tuple[int, int]) -> tuple[Cell, ...]:
    """The six cells sharing a lattice vertex."""
    y, x = vertex
    return tuple(Cell(y + dy, x + dx) for dy, dx in HEXAGON_CELLS)


class Board:
    """Mapping of occupied cells to placed tiles."""

    def __init__(self) -> None:
        self._cells: dict[Cell, PlacedTile] = {}

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, cell: Cell) -> bool:
        return cell in self._cells

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    @property
    def is_empty(self) -> bool:
        return not self._cells

    def get(self, cell: Cell) -> PlacedTile | None:
        return self._cells.get(cell)

    def items(self):
        return self._cells.items()

    # -- Adjacency ------------------------------------------------------

    @staticmethod
    def neighbor_rules(cell: Cell) -> tuple[NeighborRule, ...]:
        return NEIGHBOR_RULES[cell.orientation]

    def neighbors(self, cell: Cell) -> list[tuple[Cell, NeighborRule]]:
        """The three edge neighbours of a cell with their matching rules."""
        return [(cell.offset(rule.dr, rule.dc), rule) for rule in self.neighbor_rules(cell)]

    def frontier(self) -> list[Cell]:
        """Empty cells adjacent to at least one occupied cell, in board order."""
        seen: dict[Cell, None] = {}
        for cell in self._cells:
            for neighbor, _ in self.neighbors(cell):
                if neighbor not in self._cells:
                    seen.setdefault(neighbor, None)
        return list(seen)

    # -- Validation -----------------------------------------------------

    def is_valid(self, cell: Cell, values: Sequence[int]) -> bool:
        """
        Check whether placing oriented `values` at `cell` is legal.

        The first tile may go anywhere. Afterwards a tile must touch at least
        one occupied cell by an edge, and every corner on a shared edge must
        equal the facing corner of that neighbour.
        """
        if cell in self._cells:
            return False
        if not self._cells:
            return True

        adjacent = False
        for neighbor, rule in self.neighbors(cell):
            tile = self._cells.get(neighbor)
            if tile is None:
                continue
            adjacent = True
            for mine, theirs in zip(rule.mine, rule.theirs):
                if values[mine] != tile.values[theirs]:
                    return False
        return adjacent

    def get_valid_placements(self, tile_values: Sequence[int]) -> list[Placement]:
        """
        Return every legal placement of a canonical tile.

        On an empty board this is the three rotations at the origin.
        Otherwise only frontier cells are searched, trying all rotations.
        """
        if not self._cells:
            return [
                Placement(cell=ORIGIN, rotation=rotation, values=orient(tile_values, rotation))
                for rotation in ROTATIONS
            ]

        out = []
        for cell in self.frontier():
            for rotation in ROTATIONS:
                values = orient(tile_values, rotation)
                if self.is_valid(cell, values):
                    out.append(Placement(cell=cell, rotation=rotation, values=values))
        return out

    def has_valid_placement(self, tile_values: Sequence[int]) -> bool:
        """Cheaper than get_valid_placements when only existence matters."""
        if not self._cells:
            return True
        for cell in self.frontier():
            for rotation in ROTATIONS:
                if self.is_valid(cell, orient(tile_values, rotation)):
                    return True
        return False

    # -- Mutation -------------------------------------------------------

    def place(self, cell: Cell, values: Sequence[int], tile_id: int, player_id: int) -> PlacedTile:
        """
        Commit a tile to the board.

        Raises:
            ValueError: If the placement is not legal
        """
        values = tuple(values)
        if not self.is_valid(cell, values):
            raise ValueError(f"Cannot place {values} at ({cell.row}, {cell.col}).")
        placed = PlacedTile(values=values, tile_id=tile_id, player_id=player_id)
        self._cells[cell] = placed
        return placed

    # -- Scoring --------------------------------------------------------

    def score_placement(self, cell: Cell, values: Sequence[int]) -> ScoringResult:
        """
        Score a tile at `cell` as if the board already contains it.

        Scoring rules:
        - Base: sum of the three corners
        - Triple: 0-0-0 scores a flat 40, any other triple scores sum + 10
        - Bridge (+40): exactly one occupied edge neighbour, and the vertex
          opposite that edge is touched by another occupied cell
        - Hexagon: +50 / +60 / +70 when 1 / 2 / 3 of the tile's vertices
          end up with all six surrounding cells occupied

        Args:
            cell: Where the tile is (or will be) placed
            values: Oriented corner values

        Returns:
            ScoringResult with total and breakdown
        """
        def occupied(other: Cell) -> bool:
            return other == cell or other in self._cells

        breakdown = []
        total = tile_sum(values)
        if is_triple(values):
            if values[0] == 0:
                breakdown.append(ScoringBreakdown(
                    category=ScoringCategory.ZERO_TRIPLE,
                    points=ZERO_TRIPLE_SCORE,
                    description="Triple zero",
                ))
            else:
                breakdown.append(ScoringBreakdown(
                    category=ScoringCategory.TRIPLE,
                    points=total + TRIPLE_BONUS,
                    description=f"Triple {values[0]}",
                ))
        else:
            breakdown.append(ScoringBreakdown(
                category=ScoringCategory.BASE,
                points=total,
                description="Corner sum",
            ))

        connected = [rule for neighbor, rule in self.neighbors(cell) if neighbor in self._cells]
        is_bridge = False
        if len(connected) == 1:
            vertex = corner_vertex(cell, connected[0].opposite)
            is_bridge = any(
                other != cell and other in self._cells for other in hexagon_around(vertex)
            )
        if is_bridge:
            breakdown.append(ScoringBreakdown(
                category=ScoringCategory.BRIDGE,
                points=BRIDGE_BONUS,
                description="Bridge",
            ))

        completed = sum(
            1
            for corner in range(3)
            if all(occupied(other) for other in hexagon_around(corner_vertex(cell, corner)))
        )
        if completed:
            category = (
                ScoringCategory.HEXAGON,
                ScoringCategory.DOUBLE_HEXAGON,
                ScoringCategory.TRIPLE_HEXAGON,
            )[min(completed, 3) - 1]
            breakdown.append(ScoringBreakdown(
                category=category,
                points=HEXAGON_BONUSES[min(completed, 3)],
                description=f"{completed} hexagon(s) completed",
            ))

        return ScoringResult(
            points=sum(item.points for item in breakdown),
            breakdown=tuple(breakdown),
            hexagons_completed=completed,
            is_bridge=is_bridge,
        )

    def calc_score(self, cell: Cell, values: Sequence[int]) -> int:
        return self.score_placement(cell, values).points

    # -- Serialization --------------------------------------------------

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Convert to a "row,col"-keyed wire mapping."""
        return {cell.key: tile.to_dict() for cell, tile in self._cells.items()}

    def load(self, data: dict[str, dict[str, Any]]) -> None:
        """Replace the whole board with a serialized mapping."""
        cells = {Cell.from_key(key): PlacedTile.from_dict(value) for key, value in data.items()}
        self._cells = cells

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, Any]]) -> "Board":
        board = cls()
        board.load(data)
        return board
