"""
PlatformRepository - linked platforms and aggregated stats of a user.

Both live inside the user document:

    {
        "_id": "...",
        "platforms": {"<platform_id>": {PlatformConnection}},
        "stats": {AggregatedStudentStats},
        "stats_updated_at": datetime
    }

Writes target sub-document paths ($set / $unset on "platforms.<id>...") so
concurrent syncs of different platforms never overwrite each other.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from app.models.platform import AggregatedStudentStats, PlatformConnection

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The user document could not be read or written."""
    pass


class PlatformRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    # ============================================
    # READ
    # ============================================

    async def get_connections(self, user_id: str) -> dict[str, PlatformConnection]:
        """Linked platforms of the user keyed by platform id. Empty if none (or no user)."""
        doc = await self._find_user(user_id, {"platforms": 1})
        if not doc:
            return {}

        connections: dict[str, PlatformConnection] = {}
        for platform_id, raw in (doc.get("platforms") or {}).items():
            data = dict(raw)
            data.setdefault("platform_id", platform_id)

            # Documentos viejos pueden tener stats sin timestamp: no son confiables
            if data.get("cached_stats") is not None and data.get("last_synced_at") is None:
                logger.warning(f"Ignoring unsynced cached stats for {platform_id} of user {user_id}")
                data["cached_stats"] = None

            try:
                connections[platform_id] = PlatformConnection(**data)
            except ValidationError as e:
                logger.warning(f"Skipping malformed {platform_id} connection of user {user_id}: {e}")

        return connections

    async def get_aggregated_stats(
        self, user_id: str
    ) -> tuple[Optional[AggregatedStudentStats], Optional[datetime]]:
        doc = await self._find_user(user_id, {"stats": 1, "stats_updated_at": 1})
        if not doc or not doc.get("stats"):
            return None, None
        return AggregatedStudentStats(**doc["stats"]), doc.get("stats_updated_at")

    # ============================================
    # WRITE
    # ============================================

    async def add_connection(self, user_id: str, platform_id: str, connection: PlatformConnection) -> None:
        """Create or replace the connection for one platform."""
        await self._update(
            {"_id": user_id},
            {"$set": {f"platforms.{platform_id}": connection.model_dump()}},
            f"User {user_id} not found",
        )

    async def remove_connection(self, user_id: str, platform_id: str) -> bool:
        """Delete the connection and its cached stats. False if it was not linked."""
        try:
            result = await self.collection.update_one(
                {"_id": user_id, f"platforms.{platform_id}": {"$exists": True}},
                {"$unset": {f"platforms.{platform_id}": ""}},
            )
        except PyMongoError as e:
            raise StorageError(f"Failed to unlink {platform_id}: {e}") from e
        return result.modified_count > 0

    async def set_connection_stats(
        self,
        user_id: str,
        platform_id: str,
        stats: dict[str, Any],
        synced_at: Optional[datetime] = None,
    ) -> None:
        """
        Store freshly fetched stats for one platform.

        Stats and last_synced_at go in the same $set. Only matches connections
        that still exist, so a sync racing an unlink cannot bring it back.
        """
        synced_at = synced_at or datetime.now(timezone.utc)
        await self._update(
            {"_id": user_id, f"platforms.{platform_id}": {"$exists": True}},
            {
                "$set": {
                    f"platforms.{platform_id}.cached_stats": stats,
                    f"platforms.{platform_id}.last_synced_at": synced_at,
                }
            },
            f"No {platform_id} connection for user {user_id}",
        )

    async def set_aggregated_stats(
        self,
        user_id: str,
        stats: AggregatedStudentStats,
        updated_at: Optional[datetime] = None,
    ) -> None:
        """Overwrite the whole aggregate."""
        await self._update(
            {"_id": user_id},
            {
                "$set": {
                    "stats": stats.model_dump(),
                    "stats_updated_at": updated_at or datetime.now(timezone.utc),
                }
            },
            f"User {user_id} not found",
        )

    async def clear_unsynced_stats(self, user_id: str) -> list[str]:
        """Drop cached stats that have no last_synced_at. Returns the affected platform ids."""
        doc = await self._find_user(user_id, {"platforms": 1})
        if not doc:
            return []

        affected = [
            platform_id
            for platform_id, raw in (doc.get("platforms") or {}).items()
            if raw.get("cached_stats") is not None and raw.get("last_synced_at") is None
        ]
        if affected:
            await self._update(
                {"_id": user_id},
                {"$unset": {f"platforms.{platform_id}.cached_stats": "" for platform_id in affected}},
                f"User {user_id} not found",
            )
        return affected

    async def clear_cached_stats(self, user_id: str) -> int:
        """Drop stats and sync timestamps of every connection. Returns how many were cleared."""
        doc = await self._find_user(user_id, {"platforms": 1})
        if not doc or not doc.get("platforms"):
            return 0

        unset: dict[str, str] = {}
        for platform_id in doc["platforms"]:
            unset[f"platforms.{platform_id}.cached_stats"] = ""
            unset[f"platforms.{platform_id}.last_synced_at"] = ""

        await self._update({"_id": user_id}, {"$unset": unset}, f"User {user_id} not found")
        return len(doc["platforms"])

    # ============================================
    # Helpers
    # ============================================

    async def _find_user(self, user_id: str, projection: dict[str, int]) -> Optional[dict]:
        try:
            return await self.collection.find_one({"_id": user_id}, projection)
        except PyMongoError as e:
            raise StorageError(f"Failed to read user {user_id}: {e}") from e

    async def _update(self, query: dict, update: dict, missing_message: str) -> None:
        try:
            result = await self.collection.update_one(query, update)
        except PyMongoError as e:
            raise StorageError(f"Failed to update user {query.get('_id')}: {e}") from e
        except (BSONError, OverflowError) as e:
            # Document could not be encoded, e.g. an integer wider than 8 bytes
            raise StorageError(f"Unstorable data for user {query.get('_id')}: {e}") from e
        if result.matched_count == 0:
            raise StorageError(missing_message)
