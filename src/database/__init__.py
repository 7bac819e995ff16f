"""
Trikono Database Layer.

Supabase persistence for full game snapshots, and the pydantic models
describing snapshot records on the wire.
"""

from src.database.client import get_supabase_client
from src.database.game_state import GameStateManager
from src.database.models import (
    FullPlayerModel,
    FullSnapshot,
    GameSnapshotRecord,
    PlayerSnapshot,
    PublicPlayerModel,
    TileModel,
)

__all__ = [
    "get_supabase_client",
    "FullPlayerModel",
    "FullSnapshot",
    "GameSnapshotRecord",
    "GameStateManager",
    "PlayerSnapshot",
    "PublicPlayerModel",
    "TileModel",
]
