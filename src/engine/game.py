"""
Trikono - Game State Machine

Owns the players, the draw pool and the board, and runs the turn cycle:

- waiting: players join, then start() deals the tiles
- playing: the current player places, draws or passes
- finished: someone emptied their hand, or nobody can move (terminal)

Actions never raise. Every rejection comes back as an ActionResult carrying
an ActionError, and leaves the game exactly as it was.
"""

import random
from dataclasses import dataclass, field
from typing import Any, Sequence

from src.engine.actions import Action, DrawTile, PassTurn, PlaceTile
from src.engine.base import (
    ActionError,
    ActionResult,
    GamePhase,
    LastAction,
    TileDefinition,
)
from src.engine.board import Board
from src.engine.tiles import ALL_TILES, orient, shuffled
from src.engine.validators import (
    MAX_PLAYERS,
    validate_cell,
    validate_hand_index,
    validate_player_count,
    validate_player_index,
    validate_rotation,
)

SMALL_TABLE_HAND = 9    # two players or fewer
LARGE_TABLE_HAND = 7
DRAW_PENALTY = 5
PASS_PENALTY = 10
GO_OUT_BONUS = 25


@dataclass
class Player:
    """
    A seated player.

    Attributes:
        id: Stable identity supplied by the host (peer id)
        name: Display name
        hand: Tiles held; slot order addresses place actions
        score: Running total
    """
    id: str
    name: str
    hand: list[TileDefinition] = field(default_factory=list)
    score: int = 0

    @property
    def hand_total(self) -> int:
        return sum(tile.total for tile in self.hand)

    def to_public_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "tileCount": len(self.hand), "score": self.score}

    def to_full_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tiles": [tile.to_dict() for tile in self.hand],
            "score": self.score,
        }

    @classmethod
    def from_full_dict(cls, data: dict[str, Any]) -> "Player":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            hand=[TileDefinition.from_dict(tile) for tile in data.get("tiles", [])],
            score=int(data.get("score", 0)),
        )


class Game:
    """Canonical game state, mutated one action at a time."""

    def __init__(self, rng: random.Random | None = None, max_players: int = MAX_PLAYERS) -> None:
        self.rng = rng or random.Random()
        self.max_players = max_players
        self.board = Board()
        self.players: list[Player] = []
        self.pool: list[TileDefinition] = []
        self.current_player_index = 0
        self.phase = GamePhase.WAITING
        self.drawn_this_turn = False
        self.winner: int | None = None
        self.last_action: LastAction | None = None

    # -- Lobby ----------------------------------------------------------

    def add_player(self, player_id: str, name: str) -> int:
        """
        Seat a player before the game starts.

        Returns:
            The new player's index (turn order)

        Raises:
            ValueError: If the game has started or the table is full
        """
        if self.phase is not GamePhase.WAITING:
            raise ValueError("Game already started.")
        if len(self.players) >= self.max_players:
            raise ValueError("Game is full.")
        self.players.append(Player(id=player_id, name=name))
        return len(self.players) - 1

    def remove_player(self, player_id: str) -> bool:
        """Unseat a player while waiting. Returns whether anyone was removed."""
        if self.phase is not GamePhase.WAITING:
            return False
        for i, player in enumerate(self.players):
            if player.id == player_id:
                del self.players[i]
                return True
        return False

    def index_of(self, player_id: str) -> int | None:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        return None

    # -- Lifecycle ------------------------------------------------------

    def start(self, players: Sequence[tuple[str, str]] | None = None) -> None:
        """
        Shuffle, deal and pick the starting player.

        Args:
            players: Optional (id, name) pairs replacing the current lobby

        Raises:
            ValueError: If the game is not waiting or the player count is not 2-4
        """
        if self.phase is not GamePhase.WAITING:
            raise ValueError("Game already started.")
        if players is not None:
            seated = [Player(id=player_id, name=name) for player_id, name in players]
        else:
            seated = self.players
        validate_player_count(len(seated), self.max_players)

        self.players = seated
        self.pool = shuffled(ALL_TILES, self.rng)

        per_player = SMALL_TABLE_HAND if len(self.players) <= 2 else LARGE_TABLE_HAND
        for player in self.players:
            player.hand = self.pool[:per_player]
            del self.pool[:per_player]
            player.score = 0

        self.board = Board()
        self.current_player_index = self._find_starter()
        self.phase = GamePhase.PLAYING
        self.drawn_this_turn = False
        self.winner = None
        self.last_action = None

    def _find_starter(self) -> int:
        """Holder of the best tile: any triple beats any non-triple, then higher sum."""
        best, best_total, best_triple = 0, -1, False
        for i, player in enumerate(self.players):
            for tile in player.hand:
                triple = tile.is_triple
                if (triple and not best_triple) or (triple == best_triple and tile.total > best_total):
                    best, best_total, best_triple = i, tile.total, triple
        return best

    @property
    def current_player(self) -> Player | None:
        if not self.players:
            return None
        return self.players[self.current_player_index]

    @property
    def pool_size(self) -> int:
        return len(self.pool)

    # -- Actions --------------------------------------------------------

    def apply(self, action: Action) -> ActionResult:
        """Run one player action."""
        if isinstance(action, PlaceTile):
            return self.place(
                action.player_index, action.hand_index, action.row, action.col, action.rotation
            )
        if isinstance(action, DrawTile):
            return self.draw(action.player_index)
        if isinstance(action, PassTurn):
            return self.pass_turn(action.player_index)
        raise TypeError(f"Unknown action {type(action).__name__}.")

    def _check_turn(self, player_index: Any) -> ActionError | None:
        if self.phase is not GamePhase.PLAYING:
            return ActionError.GAME_NOT_IN_PROGRESS
        try:
            player_index = validate_player_index(player_index, len(self.players))
        except ValueError:
            return ActionError.NOT_YOUR_TURN
        if player_index != self.current_player_index:
            return ActionError.NOT_YOUR_TURN
        return None

    def place(
        self,
        player_index: int,
        hand_index: int,
        row: int,
        col: int,
        rotation: int,
    ) -> ActionResult:
        """
        Place a tile from the player's hand onto the board.

        Emptying the hand ends the game: the player gets +25 plus the corner
        sum of every tile still held by the others.
        """
        error = self._check_turn(player_index)
        if error:
            return ActionResult.fail(error)

        player = self.players[player_index]
        try:
            hand_index = validate_hand_index(hand_index, len(player.hand))
        except ValueError:
            return ActionResult.fail(ActionError.INVALID_TILE)
        try:
            cell = validate_cell(row, col)
            rotation = validate_rotation(rotation)
        except ValueError:
            return ActionResult.fail(ActionError.INVALID_PLACEMENT)

        tile = player.hand[hand_index]
        values = orient(tile.values, rotation)
        if not self.board.is_valid(cell, values):
            return ActionResult.fail(ActionError.INVALID_PLACEMENT)

        self.board.place(cell, values, tile.id, player_index)
        scoring = self.board.score_placement(cell, values)
        player.score += scoring.points
        del player.hand[hand_index]
        self.last_action = LastAction(type="place", player=player_index, row=cell.row, col=cell.col)

        if not player.hand:
            player.score += GO_OUT_BONUS
            for other in self.players:
                if other is not player:
                    player.score += other.hand_total
            self.phase = GamePhase.FINISHED
            self.winner = player_index
            return ActionResult(
                success=True,
                score=scoring.points,
                game_over=True,
                winner=player_index,
                scoring=scoring,
            )

        self._next_turn()
        return ActionResult(success=True, score=scoring.points, scoring=scoring)

    def draw(self, player_index: int) -> ActionResult:
        """Take a tile from the pool for a 5 point penalty. The turn continues."""
        error = self._check_turn(player_index)
        if error:
            return ActionResult.fail(error)
        if not self.pool:
            return ActionResult.fail(ActionError.POOL_EMPTY)

        player = self.players[player_index]
        tile = self.pool.pop()
        player.hand.append(tile)
        player.score = max(0, player.score - DRAW_PENALTY)
        self.drawn_this_turn = True
        self.last_action = LastAction(type="draw", player=player_index)

        return ActionResult(success=True, tile=tile, pool_size=len(self.pool))

    def pass_turn(self, player_index: int) -> ActionResult:
        """
        Give up the turn for a 10 point penalty.

        Only allowed after drawing (or with an empty pool), and only when no
        held tile fits anywhere. Ends the game when nobody can move any more.
        """
        error = self._check_turn(player_index)
        if error:
            return ActionResult.fail(error)
        if not self.drawn_this_turn and self.pool:
            return ActionResult.fail(ActionError.MUST_DRAW_FIRST)
        if self.can_play(player_index):
            return ActionResult.fail(ActionError.HAS_VALID_PLACEMENT)

        player = self.players[player_index]
        player.score = max(0, player.score - PASS_PENALTY)
        self.last_action = LastAction(type="pass", player=player_index)
        self._next_turn()

        if self._is_stalemate():
            self.phase = GamePhase.FINISHED
            self.winner = self._best_player()
            return ActionResult(success=True, game_over=True, winner=self.winner)
        return ActionResult(success=True)

    def _next_turn(self) -> None:
        self.current_player_index = (self.current_player_index + 1) % len(self.players)
        self.drawn_this_turn = False

    def _is_stalemate(self) -> bool:
        if self.pool:
            return False
        return not any(self.can_play(i) for i in range(len(self.players)))

    def _best_player(self) -> int:
        best = 0
        for i in range(1, len(self.players)):
            if self.players[i].score > self.players[best].score:
                best = i
        return best

    # -- Queries --------------------------------------------------------

    def can_play(self, player_index: int) -> bool:
        """Whether any tile in the player's hand has a legal placement."""
        if not (0 <= player_index < len(self.players)):
            return False
        return any(
            self.board.has_valid_placement(tile.values)
            for tile in self.players[player_index].hand
        )

    # -- Snapshots ------------------------------------------------------

    def _public_state(self) -> dict[str, Any]:
        return {
            "board": self.board.to_dict(),
            "currentPlayerIndex": self.current_player_index,
            "phase": self.phase.value,
            "winner": self.winner,
            "drawnThisTurn": self.drawn_this_turn,
            "lastAction": self.last_action.to_dict() if self.last_action else None,
        }

    def snapshot_for_player(self, player_index: int) -> dict[str, Any]:
        """
        State visible to one player.

        Everyone's name, score and tile count are public; only the
        requesting player's own tiles are included.
        """
        state = self._public_state()
        try:
            own = self.players[validate_player_index(player_index, len(self.players))]
        except ValueError:
            own = None
        state.update({
            "players": [player.to_public_dict() for player in self.players],
            "poolSize": len(self.pool),
            "yourIndex": player_index,
            "yourTiles": [tile.to_dict() for tile in own.hand] if own is not None else [],
        })
        return state

    def snapshot_full(self) -> dict[str, Any]:
        """Complete state, including every hand and the pool order, for save/restore."""
        state = self._public_state()
        state.update({
            "players": [player.to_full_dict() for player in self.players],
            "pool": [tile.to_dict() for tile in self.pool],
        })
        return state

    def load_full(self, data: dict[str, Any]) -> None:
        """
        Restore a full snapshot verbatim.

        Raises:
            ValueError: If the snapshot is malformed
        """
        try:
            board = Board.from_dict(data.get("board", {}))
            players = [Player.from_full_dict(player) for player in data.get("players", [])]
            pool = [TileDefinition.from_dict(tile) for tile in data.get("pool", [])]
            phase = GamePhase(data.get("phase", GamePhase.WAITING.value))
            current = int(data.get("currentPlayerIndex", 0))
            winner = data.get("winner")
            last_action = LastAction.from_dict(data.get("lastAction"))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed snapshot: {exc}") from exc

        # Older snapshots use -1 for "no winner"
        if winner is not None and int(winner) < 0:
            winner = None

        self.board = board
        self.players = players
        self.pool = pool
        self.phase = phase
        self.current_player_index = current
        self.winner = int(winner) if winner is not None else None
        self.drawn_this_turn = bool(data.get("drawnThisTurn", False))
        self.last_action = last_action

    @classmethod
    def from_full(cls, data: dict[str, Any], rng: random.Random | None = None) -> "Game":
        game = cls(rng=rng)
        game.load_full(data)
        return game
