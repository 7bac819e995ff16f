"""
Trikono - Realtime Sync Manager

Host-authoritative replication. The host holds the canonical Game and
serializes every inbound message through a single-consumer queue; after
each committed action it pushes a personalised snapshot to every replica
and saves a full snapshot for failover. Replicas only ever replace their
view with the snapshots they receive.
"""

from __future__ import annotations

import logging
import queue
import random
import secrets
import string
import threading
import uuid
from typing import Any, Callable

from pydantic import BaseModel, ValidationError
from supabase import Client

from src.config.settings import Settings, configure_logging, get_settings
from src.database.game_state import GameStateManager
from src.database.models import PlayerSnapshot
from src.engine.actions import Action
from src.engine.base import ActionResult, GamePhase, Placement, TileDefinition
from src.engine.board import Board
from src.engine.game import Game
from src.engine.tiles import tile_by_id
from src.realtime.events import (
    EventPayload,
    GameEvent,
    classify_action,
    classify_snapshot_change,
)
from src.realtime.messages import (
    DrawMessage,
    ErrorMessage,
    JoinMessage,
    LeaveMessage,
    LobbyMessage,
    LobbyPlayer,
    PassMessage,
    PlaceMessage,
    StateMessage,
    dump,
    parse_inbound,
    parse_outbound,
)
from src.realtime.subscriptions import ChannelManager, host_topic, peer_topic

logger = logging.getLogger(__name__)

EventCallback = Callable[[EventPayload], None]


def _generate_code(length: int = 6) -> str:
    """Generate an alphanumeric game code, avoiding ambiguous characters."""
    alphabet = string.ascii_uppercase.replace("O", "").replace("I", "")
    alphabet += string.digits.replace("0", "").replace("1", "")
    return "".join(secrets.choice(alphabet) for _ in range(length))


class HostSession:
    """Owns the canonical game and serializes actions from every peer.

    Transport callbacks only enqueue. Messages are applied one at a time,
    either by the worker thread (start_worker) or by process_pending(),
    and snapshots are only produced between completed actions.
    """

    def __init__(
        self,
        game_id: str,
        channels: ChannelManager,
        *,
        game: Game | None = None,
        store: GameStateManager | None = None,
        on_event: EventCallback | None = None,
        poll_interval: float = 0.5,
    ) -> None:
        self.game_id = game_id
        self.game = game or Game()
        self.version = 0
        self._channels = channels
        self._store = store
        self._on_event = on_event
        self._poll_interval = poll_interval
        self._local_peers: set[str] = set()
        self._queue: queue.Queue[dict[str, Any]] = queue.Queue()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._worker: threading.Thread | None = None

    @classmethod
    def create(cls, channels: ChannelManager, **kwargs: Any) -> HostSession:
        """Host a new game under a fresh code."""
        return cls(_generate_code(), channels, **kwargs)

    @classmethod
    def restore(
        cls,
        game_id: str,
        channels: ChannelManager,
        store: GameStateManager,
        **kwargs: Any,
    ) -> HostSession | None:
        """Resume hosting from the last saved snapshot, or None if there is none."""
        record = store.get(game_id)
        if record is None:
            return None
        game = Game.from_full(record.state.model_dump(by_alias=True))
        session = cls(game_id, channels, game=game, store=store, **kwargs)
        session.version = record.version
        logger.info("Restored game %s at version %d", game_id, record.version)
        return session

    # -- Transport -------------------------------------------------------

    def open(self) -> None:
        """Start listening for replica messages."""
        self._channels.subscribe(host_topic(self.game_id), self.submit)

    def close(self) -> None:
        """Stop the worker and leave the host channel."""
        self.stop_worker()
        self._channels.unsubscribe(host_topic(self.game_id))

    def submit(self, message: dict[str, Any]) -> None:
        """Queue an inbound message. Safe to call from any thread."""
        self._queue.put(message)

    def start_worker(self) -> None:
        """Consume the queue on a background thread."""
        if self._worker and self._worker.is_alive():
            return
        self._stop.clear()
        self._worker = threading.Thread(
            target=self._run, daemon=True, name=f"host-{self.game_id}"
        )
        self._worker.start()

    def stop_worker(self) -> None:
        self._stop.set()
        if self._worker and self._worker.is_alive():
            self._worker.join(timeout=5)
        self._worker = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                message = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            try:
                self.handle(message)
            except Exception:
                logger.exception("Error handling message in game %s", self.game_id)

    def process_pending(self) -> int:
        """Apply every queued message now. Returns how many were handled."""
        handled = 0
        while True:
            try:
                message = self._queue.get_nowait()
            except queue.Empty:
                return handled
            self.handle(message)
            handled += 1

    # -- Message handling -----------------------------------------------

    def handle(self, message: dict[str, Any]) -> ActionResult | None:
        """Apply one replica message to the game."""
        try:
            parsed = parse_inbound(message)
        except ValidationError as exc:
            logger.warning("Malformed message in game %s: %s", self.game_id, exc)
            peer_id = message.get("peerId")
            if isinstance(peer_id, str):
                self._send(peer_id, ErrorMessage(message="Malformed message."))
            return None

        if isinstance(parsed, JoinMessage):
            self._handle_join(parsed)
            return None
        if isinstance(parsed, LeaveMessage):
            self.disconnect(parsed.peer_id)
            return None

        with self._lock:
            index = self.game.index_of(parsed.peer_id)
        if index is None:
            logger.warning("Action from unknown peer %s in game %s", parsed.peer_id, self.game_id)
            return None
        return self.apply(parsed.to_action(index), parsed.peer_id)

    def apply(self, action: Action, peer_id: str) -> ActionResult:
        """Run an action for a peer and publish the outcome."""
        with self._lock:
            result = self.game.apply(action)
            if result.success:
                self._commit()

        if not result.success:
            logger.info(
                "Rejected %s from %s: %s", type(action).__name__, peer_id, result.error.message
            )
            self._send(peer_id, ErrorMessage(message=result.error.message))
        elif result.game_over:
            logger.info("Game %s won by player %s", self.game_id, result.winner)

        self._emit(classify_action(action, result), peer_id, result.to_dict())
        return result

    def _handle_join(self, message: JoinMessage) -> None:
        with self._lock:
            if self.game.index_of(message.peer_id) is not None:
                # Reconnect: resend what the peer missed
                if self.game.phase is GamePhase.WAITING:
                    self.broadcast_lobby()
                else:
                    self._send_state(message.peer_id)
                return
            try:
                self.game.add_player(message.peer_id, message.name)
            except ValueError as exc:
                self._send(message.peer_id, ErrorMessage(message=str(exc)))
                return
            self.broadcast_lobby()

        logger.info("%s joined game %s", message.name, self.game_id)
        self._emit(GameEvent.PLAYER_JOINED, message.peer_id, {"name": message.name})

    # -- Host commands ---------------------------------------------------

    def add_local_player(self, peer_id: str, name: str) -> int:
        """Seat a player who plays on the host machine."""
        with self._lock:
            index = self.game.add_player(peer_id, name)
            self._local_peers.add(peer_id)
            self.broadcast_lobby()
        self._emit(GameEvent.PLAYER_JOINED, peer_id, {"name": name})
        return index

    def disconnect(self, peer_id: str) -> None:
        """A peer's connection dropped. Unseats them only before the game starts."""
        with self._lock:
            removed = self.game.remove_player(peer_id)
            if removed:
                self.broadcast_lobby()
        logger.info("Peer %s left game %s", peer_id, self.game_id)
        self._emit(GameEvent.PLAYER_LEFT, peer_id, {"removed": removed})

    def start_game(self) -> None:
        """Deal and begin play.

        Raises:
            ValueError: If the game cannot start (wrong phase or player count)
        """
        with self._lock:
            self.game.start()
            self._commit()
        logger.info(
            "Game %s started with %d players", self.game_id, len(self.game.players)
        )
        self._emit(
            GameEvent.GAME_STARTED,
            None,
            {"currentPlayerIndex": self.game.current_player_index},
        )

    def snapshot_for(self, peer_id: str) -> dict[str, Any] | None:
        """Personalised snapshot for a seated peer, for the host's own UI."""
        with self._lock:
            index = self.game.index_of(peer_id)
            if index is None:
                return None
            return self.game.snapshot_for_player(index)

    # -- Publishing ------------------------------------------------------

    def _commit(self) -> None:
        """Publish a committed change. Caller holds the lock."""
        self.version += 1
        self.broadcast_state()
        self._persist()

    def broadcast_lobby(self) -> None:
        message = LobbyMessage(
            players=[LobbyPlayer(id=p.id, name=p.name) for p in self.game.players]
        )
        for player in self.game.players:
            if player.id not in self._local_peers:
                self._send(player.id, message)

    def broadcast_state(self) -> None:
        """Send each remote player their own projection of the game."""
        for player in self.game.players:
            if player.id not in self._local_peers:
                self._send_state(player.id)

    def _send_state(self, peer_id: str) -> None:
        index = self.game.index_of(peer_id)
        if index is None:
            return
        state = PlayerSnapshot.model_validate(self.game.snapshot_for_player(index))
        self._send(peer_id, StateMessage(state=state))

    def _send(self, peer_id: str, message: BaseModel) -> None:
        if peer_id in self._local_peers:
            return
        try:
            self._channels.send(peer_topic(self.game_id, peer_id), dump(message))
        except Exception:
            logger.exception("Failed to reach peer %s in game %s", peer_id, self.game_id)

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self.game_id, self.game.snapshot_full(), self.version)
        except Exception:
            logger.exception("Failed to save snapshot for game %s", self.game_id)

    def _emit(self, event: GameEvent, peer_id: str | None, data: dict[str, Any]) -> None:
        if self._on_event is None:
            return
        self._on_event(EventPayload(event=event, game_id=self.game_id, player_id=peer_id, data=data))


class ReplicaView:
    """Read-only projection of a hosted game for one remote player.

    Actions are sent to the host; local state changes only when a
    snapshot arrives.
    """

    def __init__(
        self,
        game_id: str,
        channels: ChannelManager,
        *,
        peer_id: str | None = None,
        on_event: EventCallback | None = None,
    ) -> None:
        self.game_id = game_id
        self.peer_id = peer_id or uuid.uuid4().hex
        self.snapshot: PlayerSnapshot | None = None
        self.board = Board()
        self.lobby: list[LobbyPlayer] = []
        self.last_error: str | None = None
        self._channels = channels
        self._on_event = on_event

    # -- Transport -------------------------------------------------------

    def join(self, name: str) -> None:
        """Listen on this peer's topic and ask the host for a seat."""
        self._channels.subscribe(peer_topic(self.game_id, self.peer_id), self.receive)
        self._send(JoinMessage(type="join", peer_id=self.peer_id, name=name))

    def leave(self) -> None:
        """Tell the host this peer is going, then stop listening."""
        try:
            self._send(LeaveMessage(type="leave", peer_id=self.peer_id))
        finally:
            self._channels.unsubscribe(peer_topic(self.game_id, self.peer_id))

    def place(self, hand_index: int, row: int, col: int, rotation: int) -> None:
        self._send(PlaceMessage(
            type="place",
            peer_id=self.peer_id,
            tile_index=hand_index,
            row=row,
            col=col,
            rotation=rotation,
        ))

    def draw(self) -> None:
        self._send(DrawMessage(type="draw", peer_id=self.peer_id))

    def pass_turn(self) -> None:
        self._send(PassMessage(type="pass", peer_id=self.peer_id))

    def _send(self, message: BaseModel) -> None:
        self._channels.send(host_topic(self.game_id), dump(message))

    def receive(self, message: dict[str, Any]) -> None:
        """Handle a message from the host."""
        try:
            parsed = parse_outbound(message)
        except ValidationError as exc:
            logger.warning("Malformed host message in game %s: %s", self.game_id, exc)
            return

        if isinstance(parsed, StateMessage):
            self.apply_snapshot(parsed.state)
        elif isinstance(parsed, LobbyMessage):
            before = {p.id for p in self.lobby}
            after = {p.id for p in parsed.players}
            self.lobby = parsed.players
            data = {"players": [p.model_dump() for p in parsed.players]}
            # A resent lobby (reconnect) changes nobody
            if after - before:
                self._emit(GameEvent.PLAYER_JOINED, data)
            if before - after:
                self._emit(GameEvent.PLAYER_LEFT, data)
        elif isinstance(parsed, ErrorMessage):
            self.last_error = parsed.message
            self._emit(GameEvent.ACTION_REJECTED, {"message": parsed.message})

    def apply_snapshot(self, snapshot: PlayerSnapshot) -> None:
        """Replace the local view with a snapshot from the host."""
        previous = self.snapshot
        self.snapshot = snapshot
        self.board = Board.from_dict(
            {key: tile.model_dump(by_alias=True) for key, tile in snapshot.board.items()}
        )
        self.last_error = None
        event = classify_snapshot_change(snapshot, previous)
        if event is not None:
            self._emit(event, {"phase": snapshot.phase, "winner": snapshot.winner})

    def _emit(self, event: GameEvent, data: dict[str, Any]) -> None:
        if self._on_event is None:
            return
        self._on_event(EventPayload(event=event, game_id=self.game_id, player_id=self.peer_id, data=data))

    # -- Read-only queries -----------------------------------------------

    @property
    def your_index(self) -> int | None:
        return self.snapshot.your_index if self.snapshot else None

    @property
    def is_my_turn(self) -> bool:
        return (
            self.snapshot is not None
            and self.snapshot.phase == GamePhase.PLAYING.value
            and self.snapshot.current_player_index == self.snapshot.your_index
        )

    @property
    def your_tiles(self) -> list[TileDefinition]:
        if self.snapshot is None:
            return []
        return [tile_by_id(t.id) for t in self.snapshot.your_tiles]

    def valid_placements(self, hand_index: int) -> list[Placement]:
        """Where the tile in a hand slot could go, for UI hints."""
        tiles = self.your_tiles
        if not (0 <= hand_index < len(tiles)):
            return []
        return self.board.get_valid_placements(tiles[hand_index].values)

    def can_play(self) -> bool:
        return any(self.board.has_valid_placement(tile.values) for tile in self.your_tiles)


# -- Module-level convenience functions ----------------------------------

def host_game(
    client: Client,
    *,
    settings: Settings | None = None,
    on_event: EventCallback | None = None,
) -> HostSession:
    """Host a new game and start consuming actions.

    Convenience function for use in the UI layer.

    Args:
        client: Supabase client instance.
        settings: Hosting options; defaults to the environment settings.
        on_event: Callback for game events on the host.

    Returns:
        The running HostSession (its game_id is the join code).
    """
    settings = settings or get_settings()
    configure_logging(settings)
    rng = random.Random(settings.shuffle_seed) if settings.shuffle_seed is not None else None
    session = HostSession.create(
        ChannelManager(client),
        game=Game(rng=rng, max_players=settings.max_players),
        store=GameStateManager(client) if settings.persist_snapshots else None,
        on_event=on_event,
        poll_interval=settings.poll_interval,
    )
    session.open()
    session.start_worker()
    return session


def join_game(
    client: Client,
    game_id: str,
    name: str,
    *,
    on_event: EventCallback | None = None,
) -> ReplicaView:
    """Join a hosted game as a remote player.

    `on_event` runs on the channel thread. Actions sent from it are
    queued for broadcast rather than awaited.
    """
    replica = ReplicaView(game_id.upper(), ChannelManager(client), on_event=on_event)
    replica.join(name)
    return replica
