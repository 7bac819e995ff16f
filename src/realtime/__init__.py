"""
Trikono Real-time Sync.

Broadcast channels and host-authoritative replication for multiplayer games.
"""

from src.realtime.events import EventPayload, GameEvent
from src.realtime.subscriptions import ChannelManager
from src.realtime.sync_manager import (
    HostSession,
    ReplicaView,
    host_game,
    join_game,
)

__all__ = [
    "ChannelManager",
    "EventPayload",
    "GameEvent",
    "HostSession",
    "ReplicaView",
    "host_game",
    "join_game",
]
