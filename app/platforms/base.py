"""
Shared building blocks for platform adapters.

A platform is described declaratively by a PlatformDescriptor: where its
official API lives, which community mirrors to try, which URLs to scrape,
how to read a username out of a profile URL and which metrics it exposes.
The control flow that walks those strategies lives in adapter.py.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx

from app.core.config import Settings


# Handles we are willing to "trust" when every network strategy failed
PLAUSIBLE_HANDLE = re.compile(r"^[a-zA-Z0-9_-]+$")

# Largest integer MongoDB can store
MAX_STORED_INT = 2**63 - 1

DEFAULT_ABSENCE_MARKERS = (
    "user not found",
    "profile not found",
    "page not found",
    "does not exist",
)


class ProfileNotFound(Exception):
    """The platform explicitly reported that the handle does not exist."""
    pass


class FetchFailed(Exception):
    """A single strategy could not produce stats (timeout, bad status, bad body)."""
    pass


class PlatformFetchError(Exception):
    """Every strategy failed and the handle is not plausible enough to trust."""

    def __init__(self, platform_id: str, username: str, message: Optional[str] = None):
        self.platform_id = platform_id
        self.username = username
        super().__init__(message or f"Could not reach {platform_id} for '{username}'")


OfficialFetcher = Callable[[httpx.AsyncClient, str, Settings], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class PlatformDescriptor:
    platform_id: str
    display_name: str

    # metric name -> zero value (0, "", [] ...). Also the degraded-fetch record.
    metrics: Mapping[str, Any]

    # Regexes whose first group is the username inside a profile URL
    url_patterns: tuple[str, ...] = ()

    # Strategy 1: official API (GraphQL/REST)
    official: Optional[OfficialFetcher] = None

    # Strategy 2: community mirrors, "{username}" is substituted
    mirror_urls: tuple[str, ...] = ()
    # metric -> extra JSON keys to look for (the metric name and its camelCase are implicit)
    mirror_aliases: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    # Strategy 3: public profile pages, "{username}" is substituted
    profile_urls: tuple[str, ...] = ()
    absence_markers: tuple[str, ...] = DEFAULT_ABSENCE_MARKERS
    # metric -> regexes tried in order over the page text (first group is the value)
    html_fields: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    # (min_rating, rank) pairs, highest first. Fills "rank" when only a rating is known
    rank_table: tuple[tuple[int, str], ...] = ()

    @property
    def example_url(self) -> Optional[str]:
        if not self.profile_urls:
            return None
        return self.profile_urls[0].format(username="username")

    def empty_stats(self, username: str) -> dict[str, Any]:
        stats = {name: _fresh(value) for name, value in self.metrics.items()}
        stats["username"] = username
        return stats


def _fresh(value: Any) -> Any:
    # Avoid sharing mutable defaults between records
    if isinstance(value, list):
        return []
    if isinstance(value, dict):
        return {}
    return value


def is_plausible_handle(username: str) -> bool:
    return bool(username) and PLAUSIBLE_HANDLE.match(username) is not None


def camel_case(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


def to_int(value: Any) -> int:
    """
    Best-effort numeric coercion: "1,234" -> 1234, 12.7 -> 12, junk -> 0.

    NaN, infinities and integers MongoDB cannot store count as junk.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        try:
            value = float(value.replace(",", "").strip())
        except ValueError:
            return 0
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        value = int(value)
    if isinstance(value, int):
        return value if abs(value) <= MAX_STORED_INT else 0
    return 0


def browser_headers(settings: Settings) -> dict[str, str]:
    return {
        "User-Agent": settings.browser_user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }


def api_headers(settings: Settings) -> dict[str, str]:
    return {
        "User-Agent": settings.api_user_agent,
        "Accept": "application/json",
    }


def parse_json(response: httpx.Response) -> Any:
    """response.json() that reports malformed bodies as a strategy failure."""
    try:
        return response.json()
    except ValueError as e:
        raise FetchFailed(f"Malformed JSON from {response.request.url}") from e


def rank_from_rating(rating: int, table: tuple[tuple[int, str], ...]) -> str:
    for threshold, name in table:
        if rating >= threshold:
            return name
    return table[-1][1]
