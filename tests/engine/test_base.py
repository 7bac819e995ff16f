"""
Trikono - Base Classes Tests

Tests for dataclasses, enums, and validation utilities.
"""

import pytest
from src.engine.base import (
    ActionError,
    ActionResult,
    Cell,
    GamePhase,
    LastAction,
    Orientation,
    PlacedTile,
    ScoringBreakdown,
    ScoringCategory,
    ScoringResult,
    TileDefinition,
)
from src.engine.validators import (
    validate_cell,
    validate_hand_index,
    validate_player_count,
    validate_player_index,
    validate_rotation,
)


class TestGamePhase:
    """Tests for GamePhase enum."""

    def test_phase_values(self):
        assert GamePhase.WAITING.value == "waiting"
        assert GamePhase.PLAYING.value == "playing"
        assert GamePhase.FINISHED.value == "finished"


class TestActionError:
    """Tests for ActionError enum."""

    def test_all_errors_defined(self):
        assert {e.name for e in ActionError} == {
            "GAME_NOT_IN_PROGRESS", "NOT_YOUR_TURN", "INVALID_TILE",
            "INVALID_PLACEMENT", "POOL_EMPTY", "MUST_DRAW_FIRST",
            "HAS_VALID_PLACEMENT",
        }

    def test_every_error_has_message(self):
        for error in ActionError:
            assert error.message

    def test_messages(self):
        assert ActionError.NOT_YOUR_TURN.message == "Not your turn."
        assert ActionError.MUST_DRAW_FIRST.message == "Draw a tile first."


class TestTileDefinition:
    """Tests for TileDefinition dataclass."""

    def test_valid_tile(self):
        tile = TileDefinition(id=7, values=(0, 1, 2))
        assert tile.total == 3
        assert not tile.is_triple

    def test_triple(self):
        assert TileDefinition(id=55, values=(5, 5, 5)).is_triple

    def test_unsorted_raises(self):
        with pytest.raises(ValueError, match="must be sorted"):
            TileDefinition(id=0, values=(3, 2, 1))

    def test_out_of_range_raises(self):
        with pytest.raises(ValueError, match="between 0 and 5"):
            TileDefinition(id=0, values=(1, 2, 6))

    def test_wrong_length_raises(self):
        with pytest.raises(ValueError, match="exactly 3 values"):
            TileDefinition(id=0, values=(1, 2))

    def test_immutable(self):
        tile = TileDefinition(id=0, values=(0, 0, 0))
        with pytest.raises(AttributeError):
            tile.id = 3

    def test_dict_round_trip(self):
        tile = TileDefinition(id=20, values=(1, 2, 4))
        assert tile.to_dict() == {"id": 20, "values": [1, 2, 4]}
        assert TileDefinition.from_dict(tile.to_dict()) == tile


class TestCell:
    """Tests for Cell orientation and keys."""

    @pytest.mark.parametrize("row, col, orientation", [
        (0, 0, Orientation.UP),
        (0, 1, Orientation.DOWN),
        (1, 0, Orientation.DOWN),
        (1, 1, Orientation.UP),
        (-1, 0, Orientation.DOWN),
        (-1, -1, Orientation.UP),
        (-3, 2, Orientation.DOWN),
    ])
    def test_orientation_from_parity(self, row, col, orientation):
        assert Cell(row, col).orientation is orientation

    def test_key(self):
        assert Cell(-2, 5).key == "-2,5"

    def test_from_key(self):
        assert Cell.from_key("-2,5") == Cell(-2, 5)

    @pytest.mark.parametrize("key", ["", "1", "a,b", "1,2,3"])
    def test_from_key_invalid(self, key):
        with pytest.raises(ValueError, match="Invalid cell key"):
            Cell.from_key(key)

    def test_hashable(self):
        assert len({Cell(0, 0), Cell(0, 0), Cell(0, 1)}) == 2


class TestPlacedTile:
    def test_dict_round_trip(self):
        placed = PlacedTile(values=(3, 1, 2), tile_id=25, player_id=1)
        data = placed.to_dict()
        assert data == {"values": [3, 1, 2], "tileId": 25, "playerId": 1}
        assert PlacedTile.from_dict(data) == placed


class TestLastAction:
    def test_place_includes_cell(self):
        action = LastAction(type="place", player=0, row=1, col=-1)
        assert action.to_dict() == {"type": "place", "player": 0, "row": 1, "col": -1}

    def test_draw_omits_cell(self):
        assert LastAction(type="draw", player=1).to_dict() == {"type": "draw", "player": 1}

    def test_from_dict_none(self):
        assert LastAction.from_dict(None) is None


class TestScoringResult:
    def test_str(self):
        result = ScoringResult(
            points=46,
            breakdown=(
                ScoringBreakdown(ScoringCategory.BASE, 6, "Corner sum"),
                ScoringBreakdown(ScoringCategory.BRIDGE, 40, "Bridge"),
            ),
            is_bridge=True,
        )
        text = str(result)
        assert "Total: 46 points" in text
        assert "Bridge: 40" in text


class TestActionResult:
    def test_fail(self):
        result = ActionResult.fail(ActionError.POOL_EMPTY)
        assert not result.success
        assert result.to_dict() == {"success": False, "error": "Pool is empty."}

    def test_place_result(self):
        assert ActionResult(success=True, score=6).to_dict() == {"success": True, "score": 6}

    def test_game_over_result(self):
        data = ActionResult(success=True, score=6, game_over=True, winner=0).to_dict()
        assert data["gameOver"] is True
        assert data["winner"] == 0

    def test_draw_result(self):
        tile = TileDefinition(id=0, values=(0, 0, 0))
        data = ActionResult(success=True, tile=tile, pool_size=37).to_dict()
        assert data == {"success": True, "tile": {"id": 0, "values": [0, 0, 0]}, "poolSize": 37}


class TestValidators:
    """Tests for input validators."""

    def test_validate_cell(self):
        assert validate_cell(-3, 4) == Cell(-3, 4)

    @pytest.mark.parametrize("row, col", [("1", 0), (0, 1.5), (None, 0), (True, 0)])
    def test_validate_cell_rejects_non_ints(self, row, col):
        with pytest.raises(ValueError, match="must be an integer"):
            validate_cell(row, col)

    @pytest.mark.parametrize("rotation", [0, 1, 2])
    def test_validate_rotation(self, rotation):
        assert validate_rotation(rotation) == rotation

    @pytest.mark.parametrize("rotation", [-1, 3])
    def test_validate_rotation_out_of_range(self, rotation):
        with pytest.raises(ValueError, match="Rotation must be one of"):
            validate_rotation(rotation)

    def test_validate_rotation_rejects_bool(self):
        with pytest.raises(ValueError, match="must be an integer"):
            validate_rotation(True)

    def test_validate_hand_index(self):
        assert validate_hand_index(2, 3) == 2

    @pytest.mark.parametrize("index", [-1, 3])
    def test_validate_hand_index_out_of_range(self, index):
        with pytest.raises(ValueError, match="out of range"):
            validate_hand_index(index, 3)

    def test_validate_player_index(self):
        assert validate_player_index(1, 2) == 1
        with pytest.raises(ValueError, match="out of range"):
            validate_player_index(2, 2)

    @pytest.mark.parametrize("count", [2, 3, 4])
    def test_validate_player_count(self, count):
        assert validate_player_count(count) == count

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_validate_player_count_out_of_range(self, count):
        with pytest.raises(ValueError, match="Player count must be 2-4"):
            validate_player_count(count)
