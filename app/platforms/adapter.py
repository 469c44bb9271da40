"""
Platform adapters: the ordered fetch chain behind every platform.

    official API -> community mirrors -> HTML profile page -> basic profile

The first strategy that produces stats wins. ProfileNotFound raised by any
strategy means the platform confirmed the handle does not exist and the
adapter answers None. Transport errors only advance the chain.
"""

import logging
import math
import re
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from app.core.config import Settings, get_settings
from app.platforms.base import (
    MAX_STORED_INT,
    FetchFailed,
    PlatformDescriptor,
    PlatformFetchError,
    ProfileNotFound,
    api_headers,
    browser_headers,
    camel_case,
    is_plausible_handle,
    parse_json,
    rank_from_rating,
    to_int,
)
from app.platforms.extraction import extract_fields, has_absence_marker

logger = logging.getLogger(__name__)


OFFICIAL_API = "official_api"
THIRD_PARTY_API = "third_party_api"
HTML_SCRAPE = "html_scrape"
BASIC_PROFILE = "basic_profile"

MIRROR_ERROR_STATUSES = {"error", "failed"}


class PlatformAdapter:
    """Fetches and normalizes the public stats of one platform."""

    def __init__(self, descriptor: PlatformDescriptor, settings: Optional[Settings] = None):
        self.descriptor = descriptor
        self.settings = settings or get_settings()

    @property
    def platform_id(self) -> str:
        return self.descriptor.platform_id

    def canonical_username(self, identifier: str) -> str:
        """Username out of a raw handle or a profile URL."""
        value = (identifier or "").strip()

        for pattern in self.descriptor.url_patterns:
            match = re.search(pattern, value, re.IGNORECASE)
            if match:
                value = match.group(1)
                break

        return value.strip().strip("/").lstrip("@")

    async def fetch_stats(
        self,
        identifier: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Stats for the given handle or profile URL.

        Returns None when the platform confirms the profile does not exist.
        Raises PlatformFetchError when every strategy failed and the handle
        does not look like a real username.
        """
        username = self.canonical_username(identifier)
        if not username:
            return None

        if client is not None:
            return await self._run_chain(client, username)

        async with httpx.AsyncClient(follow_redirects=True) as own_client:
            return await self._run_chain(own_client, username)

    async def _run_chain(self, client: httpx.AsyncClient, username: str) -> Optional[dict[str, Any]]:
        strategies = (
            (OFFICIAL_API, self._fetch_official),
            (THIRD_PARTY_API, self._fetch_mirrors),
            (HTML_SCRAPE, self._scrape_profile),
        )

        try:
            for method, strategy in strategies:
                extracted = await strategy(client, username)
                if extracted is not None:
                    logger.debug(f"{self.platform_id}: stats for '{username}' via {method}")
                    return self.finalize(username, extracted, method)
        except ProfileNotFound:
            logger.info(f"{self.platform_id}: profile '{username}' not found")
            return None

        if is_plausible_handle(username):
            logger.warning(
                f"{self.platform_id}: every strategy failed for '{username}', returning basic profile"
            )
            return self.finalize(username, {}, BASIC_PROFILE)

        raise PlatformFetchError(self.platform_id, username)

    def finalize(self, username: str, extracted: dict[str, Any], method: str) -> dict[str, Any]:
        record = {
            **self.descriptor.empty_stats(username),
            **extracted,
            "username": username,
            "fetch_method": method,
        }

        rating = to_int(record.get("rating"))
        default_rank = self.descriptor.metrics.get("rank")
        if self.descriptor.rank_table and rating > 0 and record.get("rank") in ("", None, default_rank):
            record["rank"] = rank_from_rating(rating, self.descriptor.rank_table)

        return record

    # ==================== Strategies ====================

    async def _fetch_official(self, client: httpx.AsyncClient, username: str) -> Optional[dict[str, Any]]:
        if self.descriptor.official is None:
            return None

        try:
            return await self.descriptor.official(client, username, self.settings)
        except (httpx.HTTPError, FetchFailed) as e:
            logger.debug(f"{self.platform_id}: official API failed for '{username}': {e}")
        except (KeyError, TypeError, AttributeError, ValueError, OverflowError) as e:
            logger.warning(f"{self.platform_id}: unexpected official API payload for '{username}': {e}")
        return None

    async def _fetch_mirrors(self, client: httpx.AsyncClient, username: str) -> Optional[dict[str, Any]]:
        for template in self.descriptor.mirror_urls:
            url = template.format(username=username)
            try:
                response = await client.get(
                    url,
                    headers=api_headers(self.settings),
                    timeout=self.settings.mirror_timeout,
                )
                if not response.is_success:
                    logger.debug(f"{self.platform_id}: mirror {url} returned {response.status_code}")
                    continue
                extracted = self._from_mirror(parse_json(response))
            except (httpx.HTTPError, FetchFailed) as e:
                logger.debug(f"{self.platform_id}: mirror {url} failed: {e}")
                continue
            except (KeyError, TypeError, AttributeError, ValueError, OverflowError) as e:
                logger.warning(f"{self.platform_id}: unexpected payload from mirror {url}: {e}")
                continue

            if extracted:
                return extracted

        return None

    def _from_mirror(self, payload: Any) -> Optional[dict[str, Any]]:
        if not isinstance(payload, dict) or _flags_error(payload):
            return None

        # Algunos mirrors envuelven todo en "data"
        data = payload["data"] if isinstance(payload.get("data"), dict) else payload

        extracted: dict[str, Any] = {}
        for metric, default in self.descriptor.metrics.items():
            keys = (metric, camel_case(metric), *self.descriptor.mirror_aliases.get(metric, ()))
            for key in keys:
                value = _coerce(data.get(key), default)
                if value is not None:
                    extracted[metric] = value
                    break

        return extracted or None

    async def _scrape_profile(self, client: httpx.AsyncClient, username: str) -> Optional[dict[str, Any]]:
        saw_missing_page = False

        for template in self.descriptor.profile_urls:
            url = template.format(username=username)
            try:
                response = await client.get(
                    url,
                    headers=browser_headers(self.settings),
                    timeout=self.settings.html_timeout,
                    follow_redirects=True,
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.debug(f"{self.platform_id}: profile page {url} failed: {e}")
                continue

            if response.status_code == 404:
                saw_missing_page = True
                continue
            if not response.is_success:
                logger.debug(f"{self.platform_id}: profile page {url} returned {response.status_code}")
                continue

            html = response.text
            if has_absence_marker(html, self.descriptor.absence_markers):
                raise ProfileNotFound(username)

            return extract_fields(html, self.descriptor.html_fields, self.descriptor.metrics)

        if saw_missing_page:
            raise ProfileNotFound(username)
        return None


def _flags_error(payload: dict[str, Any]) -> bool:
    if payload.get("error"):
        return True
    if payload.get("success") is False:
        return True
    status = payload.get("status")
    return isinstance(status, str) and status.lower() in MIRROR_ERROR_STATUSES


def _coerce(value: Any, default: Any) -> Any:
    """Value in the shape of the metric default, or None when unusable."""
    if value is None:
        return None
    if isinstance(default, int):
        # NaN, Infinity or oversized numbers say nothing about the profile
        if isinstance(value, float) and not math.isfinite(value):
            return None
        if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_STORED_INT:
            return None
        return to_int(value)
    if isinstance(default, str):
        return value if isinstance(value, str) else str(value)
    if isinstance(value, type(default)):
        return value
    return None


# ==================== Generic ====================

GENERIC_METRICS = {
    "problems_solved": 0,
    "rating": 0,
    "rank": 0,
    "contests": 0,
}

GENERIC_FIELDS = {
    "problems_solved": (
        r"(?:problems?|questions?)\s+solved\s*:?\s*([\d,]+)",
        r"solved\s*:?\s*([\d,]+)",
        r"([\d,]+)\s+(?:problems?|questions?)\s+solved",
    ),
    "rating": (r"(?:current\s+)?rating\s*:?\s*([\d,]+)",),
    "rank": (r"(?:global\s+|world\s+)?rank(?:ing)?\s*:?\s*#?([\d,]+)",),
    "contests": (
        r"contests?\s+(?:participated|attended)\s*:?\s*([\d,]+)",
        r"([\d,]+)\s+contests?",
    ),
}


class GenericAdapter(PlatformAdapter):
    """
    Best-effort adapter for platforms without a descriptor.

    Only scrapes (two URL guesses under the base URL) and falls back to the
    basic profile.
    """

    def __init__(self, platform_id: str, base_url: Optional[str] = None, settings: Optional[Settings] = None):
        base = (base_url or f"https://{platform_id}.com").rstrip("/")
        # base_url is user input; braces must survive str.format in the scraper
        template_base = base.replace("{", "{{").replace("}", "}}")
        descriptor = PlatformDescriptor(
            platform_id=platform_id,
            display_name=platform_id.capitalize(),
            metrics=GENERIC_METRICS,
            profile_urls=(f"{template_base}/{{username}}", f"{template_base}/profile/{{username}}"),
            html_fields=GENERIC_FIELDS,
        )
        super().__init__(descriptor, settings)
        self.base_url = base

    def canonical_username(self, identifier: str) -> str:
        value = (identifier or "").strip()
        if re.match(r"^https?://", value, re.IGNORECASE):
            segments = [segment for segment in urlparse(value).path.split("/") if segment]
            value = segments[-1] if segments else ""
        return value.lstrip("@")
