"""
Trikono - Game Snapshot Store

CRUD operations for the `game_snapshots` table, which holds the latest
full snapshot of each hosted game for failover and reload.
"""

from typing import Any

from supabase import Client

from src.database.models import FullSnapshot, GameSnapshotRecord


class GameStateManager:
    """Persists full game snapshots in Supabase."""

    def __init__(self, client: Client) -> None:
        self.client = client
        self.table = client.table("game_snapshots")

    def save(self, game_id: str, snapshot: dict[str, Any], version: int) -> GameSnapshotRecord:
        """Insert or replace the snapshot for a game."""
        state = FullSnapshot.model_validate(snapshot)
        data = (
            self.table
            .upsert({
                "game_id": game_id,
                "state": state.model_dump(by_alias=True),
                "version": version,
            })
            .execute()
        )
        return GameSnapshotRecord.model_validate(data.data[0])

    def get(self, game_id: str) -> GameSnapshotRecord | None:
        """Get the latest snapshot for a game."""
        data = (
            self.table
            .select("*")
            .eq("game_id", game_id)
            .execute()
        )
        if data.data:
            return GameSnapshotRecord.model_validate(data.data[0])
        return None

    def delete(self, game_id: str) -> None:
        """Delete the stored snapshot for a game."""
        self.table.delete().eq("game_id", game_id).execute()
