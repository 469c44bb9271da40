"""
SyncService - Links student accounts on coding platforms and keeps their stats fresh.

A sync fetches every active connection concurrently. Each platform succeeds
or fails on its own: a broken platform, a timeout or a failed storage write
only turns its own outcome into a failure. Successful stats are written
through per platform and the aggregate is then recomputed from scratch.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import httpx
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import Settings, get_settings
from app.models.platform import (
    AggregatedStudentStats,
    PlatformConnection,
    PlatformsOverview,
    SyncBatch,
    SyncOutcome,
    SyncSummary,
    VerifyResult,
)
from app.platforms.registry import AdapterRegistry
from app.repositories.platform_repository import PlatformRepository, StorageError
from app.services.aggregation_service import aggregate, analyze_skills

logger = logging.getLogger(__name__)


# Se usa como clave de sub-documento en Mongo: nada de puntos ni "$"
PLATFORM_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


class PlatformServiceError(Exception):
    """Base exception for platform service errors."""
    pass


class InvalidPlatformInputError(PlatformServiceError):
    """Raised when platform id or username are missing or malformed."""
    pass


class UnsupportedPlatformError(PlatformServiceError):
    """Raised when an operation needs a dedicated adapter and there is none."""
    pass


class SyncService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        registry: Optional[AdapterRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or AdapterRegistry(self.settings)
        self.platform_repo = PlatformRepository(db)

    # ============================================
    # Validation
    # ============================================

    @staticmethod
    def normalize_platform_id(platform_id: Optional[str]) -> str:
        key = (platform_id or "").strip().lower()
        if not key:
            raise InvalidPlatformInputError("Platform is required")
        if not PLATFORM_ID_PATTERN.match(key):
            raise InvalidPlatformInputError(f"Invalid platform id '{platform_id}'")
        return key

    @staticmethod
    def _require_username(username: Optional[str]) -> str:
        value = (username or "").strip()
        if not value:
            raise InvalidPlatformInputError("Username is required")
        return value

    # ============================================
    # Link / unlink
    # ============================================

    async def link_platform(
        self,
        user_id: str,
        platform_id: str,
        username: str,
        platform_url: Optional[str] = None,
    ) -> bool:
        """
        Store a new connection (no stats until the first sync).

        Linking the same platform again replaces the previous connection.
        """
        key = self.normalize_platform_id(platform_id)
        connection = PlatformConnection(
            platform_id=key,
            username=self._require_username(username),
            platform_url=(platform_url or "").strip() or None,
            linked_at=datetime.now(timezone.utc),
            is_active=True,
        )

        await self.platform_repo.add_connection(user_id, key, connection)
        logger.info(f"🔗 User {user_id} linked {key} as '{connection.username}'")
        return True

    async def unlink_platform(self, user_id: str, platform_id: str) -> bool:
        """Remove the connection and its cached stats. False if it was not linked."""
        key = self.normalize_platform_id(platform_id)
        removed = await self.platform_repo.remove_connection(user_id, key)
        if removed:
            logger.info(f"User {user_id} unlinked {key}")
        return removed

    # ============================================
    # Sync
    # ============================================

    async def sync_all(self, user_id: str) -> SyncBatch:
        """
        Sync every linked platform of the user and refresh the aggregate.

        The aggregate is rebuilt from the stored connections, so platforms
        that failed this time still contribute their last good stats.
        """
        connections = await self.platform_repo.get_connections(user_id)
        results = await self.sync_connections(user_id, connections)

        stats = await self._recompute_aggregate(user_id)
        synced_at = datetime.now(timezone.utc)

        successful = sum(1 for outcome in results if outcome.success)
        summary = SyncSummary(total=len(results), successful=successful, failed=len(results) - successful)
        logger.info(
            f"🔄 Sync for user {user_id}: {summary.successful}/{summary.total} platforms succeeded"
        )

        return SyncBatch(results=results, summary=summary, stats=stats, synced_at=synced_at)

    async def sync_connections(
        self,
        user_id: str,
        connections: Mapping[str, PlatformConnection],
    ) -> list[SyncOutcome]:
        """One outcome per active connection, in connection order."""
        active = [
            (platform_id, connection)
            for platform_id, connection in connections.items()
            if connection.is_active
        ]
        if not active:
            return []

        concurrency = max(self.settings.sync_max_concurrency, 1)
        semaphore = asyncio.Semaphore(concurrency)
        limits = httpx.Limits(max_connections=concurrency * 2, max_keepalive_connections=concurrency)

        async with httpx.AsyncClient(limits=limits, follow_redirects=True) as client:
            tasks = [
                self._sync_one(user_id, platform_id, connection, client, semaphore)
                for platform_id, connection in active
            ]
            return list(await asyncio.gather(*tasks))

    async def _sync_one(
        self,
        user_id: str,
        platform_id: str,
        connection: PlatformConnection,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
    ) -> SyncOutcome:
        async with semaphore:
            stats, error = await self._fetch(platform_id, connection, client)

        fetched_at = datetime.now(timezone.utc)
        if error is not None:
            logger.warning(f"⚠️ Sync of {platform_id} for user {user_id} failed: {error}")
            return SyncOutcome(platform_id=platform_id, success=False, error=error, fetched_at=fetched_at)

        try:
            await self.platform_repo.set_connection_stats(user_id, platform_id, stats, fetched_at)
        except StorageError as e:
            logger.error(f"❌ Could not store {platform_id} stats for user {user_id}: {e}")
            write_error = e
        except Exception as e:
            logger.exception(f"❌ Unexpected error storing {platform_id} stats for user {user_id}")
            write_error = e
        else:
            return SyncOutcome(platform_id=platform_id, success=True, stats=stats, fetched_at=fetched_at)

        return SyncOutcome(
            platform_id=platform_id,
            success=False,
            stats=stats,
            error=f"Storage error: {write_error}",
            fetched_at=fetched_at,
        )

    async def _fetch(
        self,
        platform_id: str,
        connection: PlatformConnection,
        client: httpx.AsyncClient,
    ) -> tuple[Optional[dict[str, Any]], Optional[str]]:
        """(stats, None) on success, (None, message) otherwise. Never raises."""
        adapter = self.registry.resolve(platform_id, base_url=connection.platform_url)
        try:
            stats = await asyncio.wait_for(
                adapter.fetch_stats(connection.username, client=client),
                timeout=self.settings.adapter_timeout,
            )
        except asyncio.TimeoutError:
            return None, f"Timed out after {self.settings.adapter_timeout:g}s"
        except Exception as e:
            logger.exception(f"Unexpected error syncing {platform_id}")
            return None, str(e) or e.__class__.__name__

        if stats is None:
            return None, f"Profile not found on {platform_id} for '{connection.username}'"
        return stats, None

    async def _recompute_aggregate(self, user_id: str) -> AggregatedStudentStats:
        connections = await self.platform_repo.get_connections(user_id)
        stats = aggregate(_cached_stats(connections))
        await self.platform_repo.set_aggregated_stats(user_id, stats)
        return stats

    # ============================================
    # Verify / overview / repair
    # ============================================

    async def verify_platform(self, platform_id: str, username: str) -> VerifyResult:
        """Dry-run fetch against a dedicated adapter. Nothing is stored."""
        key = self.normalize_platform_id(platform_id)
        handle = self._require_username(username)
        if not self.registry.is_supported(key):
            raise UnsupportedPlatformError(f"Platform '{platform_id}' is not supported")

        adapter = self.registry.resolve(key)
        try:
            stats = await asyncio.wait_for(adapter.fetch_stats(handle), timeout=self.settings.adapter_timeout)
        except asyncio.TimeoutError:
            return VerifyResult(platform=key, username=handle, verified=False, message="Verification timed out")
        except Exception as e:
            logger.warning(f"Verification of {key} '{handle}' failed: {e}")
            return VerifyResult(
                platform=key,
                username=handle,
                verified=False,
                message=f"Could not reach {key}: {e}",
            )

        if stats is None:
            return VerifyResult(
                platform=key,
                username=handle,
                verified=False,
                message=f"User '{handle}' not found on {key}",
            )

        return VerifyResult(
            platform=key,
            username=stats.get("username", handle),
            verified=True,
            message="Profile verified successfully",
            stats=stats,
        )

    async def get_overview(self, user_id: str) -> PlatformsOverview:
        connections = await self.platform_repo.get_connections(user_id)
        stats, updated_at = await self.platform_repo.get_aggregated_stats(user_id)
        stats = stats or AggregatedStudentStats()

        return PlatformsOverview(
            platforms=connections,
            stats=stats,
            stats_updated_at=updated_at,
            skills=analyze_skills(stats, _cached_stats(connections)),
        )

    async def repair_unsynced_stats(self, user_id: str) -> SyncBatch:
        """
        Throw away every cached stat and sync again.

        Stats without a sync timestamp cannot be told apart from placeholder
        data, so nothing stored is kept.
        """
        unsynced = await self.platform_repo.clear_unsynced_stats(user_id)
        if unsynced:
            logger.warning(f"🧹 Removed unsynced stats of user {user_id}: {', '.join(unsynced)}")

        cleared = await self.platform_repo.clear_cached_stats(user_id)
        logger.info(f"Cleared cached stats of {cleared} platforms for user {user_id}")

        return await self.sync_all(user_id)


def _cached_stats(connections: Mapping[str, PlatformConnection]) -> dict[str, dict[str, Any]]:
    return {
        platform_id: connection.cached_stats
        for platform_id, connection in connections.items()
        if connection.is_active and connection.cached_stats
    }
