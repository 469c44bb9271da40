"""
Unit tests for SyncService
"""

from datetime import datetime, timezone

import httpx
import pytest

from app.platforms.base import PlatformFetchError
from app.repositories.platform_repository import PlatformRepository, StorageError
from app.services.sync_service import (
    InvalidPlatformInputError,
    SyncService,
    UnsupportedPlatformError,
)


async def link(service, user_id, *platforms):
    for platform_id in platforms:
        await service.link_platform(user_id, platform_id, f"{platform_id}_user")


class TestLinkPlatform:
    """Test suite for linking and unlinking platforms."""

    @pytest.mark.asyncio
    async def test_link_get_unlink_round_trip(self, test_db, student, settings, stub_registry):
        """Test a linked platform shows up without stats and disappears after unlink."""
        service = SyncService(test_db, stub_registry({}), settings)

        assert await service.link_platform(student, " LeetCode ", " alice ", "https://leetcode.com/u/alice") is True
        connections = await PlatformRepository(test_db).get_connections(student)

        assert list(connections) == ["leetcode"]
        assert connections["leetcode"].username == "alice"
        assert connections["leetcode"].platform_url == "https://leetcode.com/u/alice"
        assert connections["leetcode"].cached_stats is None
        assert connections["leetcode"].last_synced_at is None

        assert await service.unlink_platform(student, "leetcode") is True
        assert await PlatformRepository(test_db).get_connections(student) == {}

    @pytest.mark.asyncio
    async def test_unlink_not_linked(self, test_db, student, settings, stub_registry):
        """Test unlinking an unknown platform reports False."""
        service = SyncService(test_db, stub_registry({}), settings)

        assert await service.unlink_platform(student, "github") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("platform_id, username", [
        ("", "alice"),
        ("   ", "alice"),
        ("leetcode", ""),
        ("leetcode", "   "),
        ("leet.code", "alice"),
        ("$where", "alice"),
        ("-leetcode", "alice"),
    ])
    async def test_link_rejects_invalid_input(self, test_db, student, settings, stub_registry, platform_id, username):
        """Test missing values and ids unusable as document keys are rejected."""
        service = SyncService(test_db, stub_registry({}), settings)

        with pytest.raises(InvalidPlatformInputError):
            await service.link_platform(student, platform_id, username)

    @pytest.mark.asyncio
    async def test_link_unknown_platform_is_allowed(self, test_db, student, settings):
        """Test platforms without a dedicated adapter can still be linked."""
        service = SyncService(test_db, settings=settings)

        assert await service.link_platform(student, "codewars", "jdoe") is True


class TestSyncAll:
    """Test suite for concurrent syncing."""

    @pytest.mark.asyncio
    async def test_partial_failure_isolation(self, test_db, student, settings, stub_registry, leetcode_stats):
        """Test each failing platform only fails its own outcome."""
        registry = stub_registry({
            "leetcode": leetcode_stats,
            "codeforces": PlatformFetchError("codeforces", "codeforces_user"),
            "github": None,
            "kaggle": RuntimeError("parser exploded"),
            "spoj": httpx.ConnectError("connection refused"),
        })
        service = SyncService(test_db, registry, settings)
        await link(service, student, "leetcode", "codeforces", "github", "kaggle", "spoj")

        batch = await service.sync_all(student)

        assert [r.platform_id for r in batch.results] == ["leetcode", "codeforces", "github", "kaggle", "spoj"]
        assert batch.summary.total == 5
        assert batch.summary.successful == 1
        assert batch.summary.failed == 4

        by_platform = {r.platform_id: r for r in batch.results}
        assert by_platform["leetcode"].success is True
        assert by_platform["leetcode"].stats == leetcode_stats
        for platform_id in ("codeforces", "github", "kaggle", "spoj"):
            assert by_platform[platform_id].success is False
            assert by_platform[platform_id].error
        assert "not found" in by_platform["github"].error.lower()

        assert batch.stats.total_problems == 120
        assert batch.stats.rating == 1550

    @pytest.mark.asyncio
    async def test_successful_stats_are_written_through(self, test_db, student, settings, stub_registry, leetcode_stats):
        """Test stats, sync timestamp and aggregate are persisted."""
        service = SyncService(test_db, stub_registry({"leetcode": leetcode_stats, "github": None}), settings)
        await link(service, student, "leetcode", "github")

        await service.sync_all(student)

        repo = PlatformRepository(test_db)
        connections = await repo.get_connections(student)
        assert connections["leetcode"].cached_stats == leetcode_stats
        assert connections["leetcode"].last_synced_at is not None
        assert connections["github"].cached_stats is None

        stats, updated_at = await repo.get_aggregated_stats(student)
        assert stats.total_problems == 120
        assert updated_at is not None

    @pytest.mark.asyncio
    async def test_storage_failure_is_isolated(
        self, test_db, student, settings, stub_registry, leetcode_stats, codeforces_stats
    ):
        """Test a failed write only fails that platform's outcome."""
        service = SyncService(
            test_db,
            stub_registry({"leetcode": leetcode_stats, "codeforces": codeforces_stats}),
            settings,
        )
        await link(service, student, "leetcode", "codeforces")

        original_write = service.platform_repo.set_connection_stats

        async def flaky_write(user_id, platform_id, stats, synced_at=None):
            if platform_id == "codeforces":
                raise StorageError("write concern timeout")
            return await original_write(user_id, platform_id, stats, synced_at)

        service.platform_repo.set_connection_stats = flaky_write

        batch = await service.sync_all(student)
        by_platform = {r.platform_id: r for r in batch.results}

        assert by_platform["leetcode"].success is True
        assert by_platform["codeforces"].success is False
        assert by_platform["codeforces"].error.startswith("Storage error:")
        assert by_platform["codeforces"].stats == codeforces_stats

        connections = await PlatformRepository(test_db).get_connections(student)
        assert connections["leetcode"].cached_stats == leetcode_stats
        assert connections["codeforces"].cached_stats is None
        assert batch.stats.total_problems == 120

    @pytest.mark.asyncio
    async def test_unencodable_write_is_isolated(self, test_db, student, settings, stub_registry, leetcode_stats):
        """Test a write failing outside the driver error types only fails that platform."""
        kattis_stats = {"username": "kattis_user", "score": 12, "rank": 10**24}
        service = SyncService(
            test_db,
            stub_registry({"leetcode": leetcode_stats, "kattis": kattis_stats}),
            settings,
        )
        await link(service, student, "leetcode", "kattis")

        original_write = service.platform_repo.set_connection_stats

        async def encoding_write(user_id, platform_id, stats, synced_at=None):
            if platform_id == "kattis":
                raise OverflowError("MongoDB can only handle up to 8-byte ints")
            return await original_write(user_id, platform_id, stats, synced_at)

        service.platform_repo.set_connection_stats = encoding_write

        batch = await service.sync_all(student)
        by_platform = {r.platform_id: r for r in batch.results}

        assert batch.summary.total == 2
        assert by_platform["leetcode"].success is True
        assert by_platform["kattis"].success is False
        assert by_platform["kattis"].error.startswith("Storage error:")
        assert batch.stats.total_problems == 120

    @pytest.mark.asyncio
    async def test_previous_stats_still_aggregated_after_failure(
        self, test_db, student, settings, stub_registry, leetcode_stats, codeforces_stats
    ):
        """Test a platform failing now keeps contributing its last good stats."""
        repo = PlatformRepository(test_db)
        service = SyncService(test_db, stub_registry({"leetcode": leetcode_stats, "codeforces": None}), settings)
        await link(service, student, "leetcode", "codeforces")
        await repo.set_connection_stats(student, "codeforces", codeforces_stats, datetime.now(timezone.utc))

        batch = await service.sync_all(student)

        assert batch.summary.failed == 1
        assert batch.stats.total_problems == 120 + 230
        assert batch.stats.rating == 1720

    @pytest.mark.asyncio
    async def test_adapter_timeout(self, test_db, student, settings, stub_registry, leetcode_stats):
        """Test a hanging adapter is cut off without delaying the others' results."""
        settings = settings.model_copy(update={"adapter_timeout": 0.05})
        service = SyncService(
            test_db,
            stub_registry({"leetcode": leetcode_stats, "kattis": {"problems_solved": 1}}, delays={"kattis": 5}),
            settings,
        )
        await link(service, student, "leetcode", "kattis")

        batch = await service.sync_all(student)
        by_platform = {r.platform_id: r for r in batch.results}

        assert by_platform["leetcode"].success is True
        assert by_platform["kattis"].success is False
        assert "timed out" in by_platform["kattis"].error.lower()

    @pytest.mark.asyncio
    async def test_inactive_connections_are_skipped(self, test_db, student, settings, stub_registry, leetcode_stats):
        """Test deactivated connections are neither fetched nor reported."""
        registry = stub_registry({"leetcode": leetcode_stats, "github": None})
        service = SyncService(test_db, registry, settings)
        await link(service, student, "leetcode", "github")
        await test_db["users"].update_one({"_id": student}, {"$set": {"platforms.github.is_active": False}})

        batch = await service.sync_all(student)

        assert [r.platform_id for r in batch.results] == ["leetcode"]
        assert registry.adapters["github"].calls == []

    @pytest.mark.asyncio
    async def test_no_platforms(self, test_db, student, settings, stub_registry):
        """Test a student without platforms gets an empty batch and a zero aggregate."""
        service = SyncService(test_db, stub_registry({}), settings)

        batch = await service.sync_all(student)

        assert batch.results == []
        assert batch.summary.total == 0
        assert batch.stats.total_problems == 0

    @pytest.mark.asyncio
    async def test_adapter_receives_stored_username(self, test_db, student, settings, stub_registry, leetcode_stats):
        """Test the adapter gets the username exactly as linked (URLs included)."""
        registry = stub_registry({"leetcode": leetcode_stats})
        service = SyncService(test_db, registry, settings)
        await service.link_platform(student, "leetcode", "https://leetcode.com/u/alice/")

        await service.sync_all(student)

        assert registry.adapters["leetcode"].calls == ["https://leetcode.com/u/alice/"]


class TestVerifyAndRepair:
    """Test suite for verification and stats repair."""

    @pytest.mark.asyncio
    async def test_verify_existing_profile(self, test_db, settings, stub_registry, leetcode_stats):
        service = SyncService(test_db, stub_registry({"leetcode": leetcode_stats}), settings)

        result = await service.verify_platform("LeetCode", "alice")

        assert result.verified is True
        assert result.platform == "leetcode"
        assert result.stats == leetcode_stats

    @pytest.mark.asyncio
    async def test_verify_missing_profile(self, test_db, settings, stub_registry):
        service = SyncService(test_db, stub_registry({"leetcode": None}), settings)

        result = await service.verify_platform("leetcode", "ghost")

        assert result.verified is False
        assert "not found" in result.message

    @pytest.mark.asyncio
    async def test_verify_unreachable_platform(self, test_db, settings, stub_registry):
        service = SyncService(test_db, stub_registry({"codechef": PlatformFetchError("codechef", "x.y")}), settings)

        result = await service.verify_platform("codechef", "x.y")

        assert result.verified is False
        assert result.stats is None

    @pytest.mark.asyncio
    async def test_verify_unsupported_platform(self, test_db, settings, stub_registry):
        """Test verification needs a dedicated adapter."""
        service = SyncService(test_db, stub_registry({}), settings)

        with pytest.raises(UnsupportedPlatformError):
            await service.verify_platform("codewars", "jdoe")

    @pytest.mark.asyncio
    async def test_verify_does_not_persist(self, test_db, student, settings, stub_registry, leetcode_stats):
        service = SyncService(test_db, stub_registry({"leetcode": leetcode_stats}), settings)

        await service.verify_platform("leetcode", "alice")

        assert await PlatformRepository(test_db).get_connections(student) == {}

    @pytest.mark.asyncio
    async def test_repair_replaces_unsynced_stats(self, test_db, student, settings, stub_registry, leetcode_stats):
        """Test stats without sync timestamp are dropped and fetched again."""
        await test_db["users"].update_one(
            {"_id": student},
            {"$set": {
                "platforms.leetcode": {
                    "platform_id": "leetcode",
                    "username": "alice",
                    "linked_at": datetime.now(timezone.utc),
                    "is_active": True,
                    "cached_stats": {"total_solved": 9999},
                },
                "platforms.codechef": {
                    "platform_id": "codechef",
                    "username": "chef",
                    "linked_at": datetime.now(timezone.utc),
                    "is_active": True,
                    "cached_stats": {"problems_solved": 5000},
                },
            }},
        )
        service = SyncService(test_db, stub_registry({"leetcode": leetcode_stats, "codechef": None}), settings)

        batch = await service.repair_unsynced_stats(student)

        assert batch.stats.total_problems == 120
        doc = await test_db["users"].find_one({"_id": student})
        assert doc["platforms"]["leetcode"]["cached_stats"] == leetcode_stats
        assert "cached_stats" not in doc["platforms"]["codechef"]

    @pytest.mark.asyncio
    async def test_overview(self, test_db, student, settings, stub_registry, leetcode_stats, github_stats):
        """Test the overview combines connections, aggregate and skills."""
        service = SyncService(test_db, stub_registry({"leetcode": leetcode_stats, "github": github_stats}), settings)
        await link(service, student, "leetcode", "github")
        await service.sync_all(student)

        overview = await service.get_overview(student)

        assert set(overview.platforms) == {"leetcode", "github"}
        assert overview.stats.total_problems == 120
        assert overview.stats.github_contributions == 640
        assert overview.stats_updated_at is not None
        assert overview.skills.primary_languages == ["Python", "TypeScript", "Go"]
