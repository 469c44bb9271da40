"""
Official API fetchers (strategy 1 of the fetch chain).

Each fetcher receives the shared httpx client, the canonical username and the
settings, and either returns a partial stats mapping, raises ProfileNotFound
when the platform confirms the handle does not exist, or raises FetchFailed /
httpx errors so the adapter moves on to the next strategy.

Secondary calls (repositories, rating history, submissions...) are best
effort: the primary profile call decides success.
"""

import logging
import math
from collections import Counter
from typing import Any

import httpx

from app.core.config import Settings
from app.platforms.base import (
    FetchFailed,
    ProfileNotFound,
    api_headers,
    browser_headers,
    parse_json,
    rank_from_rating,
    to_int,
)

logger = logging.getLogger(__name__)


LEETCODE_GRAPHQL_URL = "https://leetcode.com/graphql"
GITHUB_API_URL = "https://api.github.com"
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
CODEFORCES_API_URL = "https://codeforces.com/api"
HACKERRANK_API_URL = "https://www.hackerrank.com/rest/hackers"
ATCODER_URL = "https://atcoder.jp/users"
ATCODER_PROBLEMS_API_URL = "https://kenkoooo.com/atcoder/atcoder-api/v3/user/ac_rank"

RECENT_CONTESTS_LIMIT = 10


# ==================== Rating -> rank tables ====================

CODEFORCES_RANKS = (
    (3000, "legendary grandmaster"),
    (2600, "international grandmaster"),
    (2400, "grandmaster"),
    (2300, "international master"),
    (2100, "master"),
    (1900, "candidate master"),
    (1600, "expert"),
    (1400, "specialist"),
    (1200, "pupil"),
    (0, "newbie"),
)

ATCODER_RANKS = (
    (2800, "Red"),
    (2400, "Orange"),
    (2000, "Yellow"),
    (1600, "Blue"),
    (1200, "Cyan"),
    (800, "Green"),
    (400, "Brown"),
    (0, "Gray"),
)


# ==================== LeetCode ====================

LEETCODE_PROFILE_QUERY = """
query getUserProfile($username: String!) {
  matchedUser(username: $username) {
    username
    submitStats: submitStatsGlobal {
      acSubmissionNum {
        difficulty
        count
      }
    }
    profile {
      ranking
      reputation
    }
    contributions {
      points
    }
  }
  userContestRanking(username: $username) {
    attendedContestsCount
    rating
  }
}
"""


async def fetch_leetcode(client: httpx.AsyncClient, username: str, settings: Settings) -> dict[str, Any]:
    response = await client.post(
        LEETCODE_GRAPHQL_URL,
        json={"query": LEETCODE_PROFILE_QUERY, "variables": {"username": username}},
        headers={
            **api_headers(settings),
            "Content-Type": "application/json",
            "Referer": "https://leetcode.com",
        },
        timeout=settings.official_api_timeout,
    )

    if response.status_code != 200:
        raise FetchFailed(f"LeetCode GraphQL returned {response.status_code}")

    payload = parse_json(response)
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict) or "matchedUser" not in data:
        raise FetchFailed("LeetCode GraphQL response without matchedUser")

    user = data["matchedUser"]
    if user is None:
        raise ProfileNotFound(username)

    buckets = {
        item.get("difficulty"): to_int(item.get("count"))
        for item in (user.get("submitStats") or {}).get("acSubmissionNum") or []
    }
    easy = buckets.get("Easy", 0)
    medium = buckets.get("Medium", 0)
    hard = buckets.get("Hard", 0)

    profile = user.get("profile") or {}
    contest = data.get("userContestRanking") or {}

    return {
        "total_solved": easy + medium + hard,
        "easy_solved": easy,
        "medium_solved": medium,
        "hard_solved": hard,
        "ranking": to_int(profile.get("ranking")),
        "reputation": to_int(profile.get("reputation")),
        "contribution_points": to_int((user.get("contributions") or {}).get("points")),
        "contests": to_int(contest.get("attendedContestsCount")),
        "contest_rating": _rounded(contest.get("rating")),
    }


def _rounded(value: Any) -> int:
    """Contest ratings come as floats; nearest int, junk -> 0."""
    if isinstance(value, float) and math.isfinite(value):
        return to_int(round(value))
    return to_int(value)


# ==================== GitHub ====================

GITHUB_CONTRIBUTIONS_QUERY = """
query($username: String!) {
  user(login: $username) {
    contributionsCollection {
      contributionCalendar {
        totalContributions
      }
    }
  }
}
"""


def _github_headers(settings: Settings, authenticated: bool = True) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": settings.api_user_agent,
    }
    if authenticated and settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"
    return headers


async def fetch_github(client: httpx.AsyncClient, username: str, settings: Settings) -> dict[str, Any]:
    headers = _github_headers(settings)
    response = await client.get(
        f"{GITHUB_API_URL}/users/{username}",
        headers=headers,
        timeout=settings.official_api_timeout,
    )

    if response.status_code == 401 and settings.github_token:
        # Token vencido o revocado: los datos públicos siguen disponibles sin auth
        logger.warning("GitHub token rejected, retrying anonymously")
        headers = _github_headers(settings, authenticated=False)
        response = await client.get(
            f"{GITHUB_API_URL}/users/{username}",
            headers=headers,
            timeout=settings.official_api_timeout,
        )

    if response.status_code == 404:
        raise ProfileNotFound(username)
    if response.status_code != 200:
        raise FetchFailed(f"GitHub users API returned {response.status_code}")

    user = parse_json(response)
    if not isinstance(user, dict):
        raise FetchFailed("GitHub users API returned a non-object body")

    stats: dict[str, Any] = {
        "name": user.get("name") or username,
        "public_repos": to_int(user.get("public_repos")),
        "followers": to_int(user.get("followers")),
        "following": to_int(user.get("following")),
    }

    repos = await _github_repositories(client, username, headers, settings)
    languages = Counter(repo["language"] for repo in repos if repo.get("language"))
    stats["languages"] = dict(languages.most_common())
    stats["repositories"] = [
        {
            "name": repo.get("name"),
            "language": repo.get("language") or "Unknown",
            "stars": to_int(repo.get("stargazers_count")),
            "forks": to_int(repo.get("forks_count")),
            "url": repo.get("html_url"),
        }
        for repo in repos[:RECENT_CONTESTS_LIMIT]
    ]

    if "Authorization" in headers:
        contributions = await _github_contributions(client, username, headers, settings)
        if contributions is not None:
            stats["total_contributions"] = contributions

    return stats


async def _github_repositories(
    client: httpx.AsyncClient,
    username: str,
    headers: dict[str, str],
    settings: Settings,
) -> list[dict]:
    try:
        response = await client.get(
            f"{GITHUB_API_URL}/users/{username}/repos",
            params={"sort": "updated", "per_page": 100},
            headers=headers,
            timeout=settings.official_api_timeout,
        )
        if response.status_code == 200:
            repos = parse_json(response)
            return repos if isinstance(repos, list) else []
        logger.debug(f"GitHub repos API returned {response.status_code}, skipping repositories")
    except (httpx.HTTPError, FetchFailed) as e:
        logger.debug(f"GitHub repos fetch failed for {username}: {e}")
    return []


async def _github_contributions(
    client: httpx.AsyncClient,
    username: str,
    headers: dict[str, str],
    settings: Settings,
) -> int | None:
    """Contribution calendar total. Only answers with a token."""
    try:
        response = await client.post(
            GITHUB_GRAPHQL_URL,
            json={"query": GITHUB_CONTRIBUTIONS_QUERY, "variables": {"username": username}},
            headers={**headers, "Content-Type": "application/json"},
            timeout=settings.official_api_timeout,
        )
        if response.status_code != 200:
            return None
        payload = parse_json(response)
        calendar = (
            ((payload.get("data") or {}).get("user") or {})
            .get("contributionsCollection", {})
            .get("contributionCalendar", {})
        )
        if "totalContributions" in calendar:
            return to_int(calendar["totalContributions"])
    except (httpx.HTTPError, FetchFailed, AttributeError) as e:
        logger.debug(f"GitHub contributions query failed for {username}: {e}")
    return None


# ==================== Codeforces ====================

async def fetch_codeforces(client: httpx.AsyncClient, username: str, settings: Settings) -> dict[str, Any]:
    headers = api_headers(settings)
    response = await client.get(
        f"{CODEFORCES_API_URL}/user.info",
        params={"handles": username},
        headers=headers,
        timeout=settings.official_api_timeout,
    )

    if response.status_code == 404:
        raise ProfileNotFound(username)

    # Codeforces responde 400 + JSON {"status": "FAILED", "comment": "...not found"} para handles inexistentes
    payload = parse_json(response)
    if not isinstance(payload, dict):
        raise FetchFailed("Codeforces user.info returned a non-object body")
    if payload.get("status") != "OK":
        comment = str(payload.get("comment", "")).lower()
        if "not found" in comment:
            raise ProfileNotFound(username)
        raise FetchFailed(f"Codeforces user.info failed: {payload.get('comment')}")

    results = payload.get("result") or []
    if not results:
        raise ProfileNotFound(username)
    user = results[0]

    rating = to_int(user.get("rating"))
    stats: dict[str, Any] = {
        "rating": rating,
        "max_rating": to_int(user.get("maxRating")) or rating,
        "rank": user.get("rank") or (rank_from_rating(rating, CODEFORCES_RANKS) if rating else "unrated"),
        "max_rank": user.get("maxRank") or user.get("rank") or "unrated",
        "contribution": to_int(user.get("contribution")),
        "friend_of_count": to_int(user.get("friendOfCount")),
    }

    history = await _codeforces_call(client, "user.rating", {"handle": username}, settings)
    if history is not None:
        stats["contests"] = len(history)
        stats["recent_contests"] = [
            {
                "contest_id": contest.get("contestId"),
                "name": contest.get("contestName"),
                "rank": contest.get("rank"),
                "old_rating": contest.get("oldRating"),
                "new_rating": contest.get("newRating"),
                "rating_change": to_int(contest.get("newRating")) - to_int(contest.get("oldRating")),
            }
            for contest in reversed(history[-RECENT_CONTESTS_LIMIT:])
        ]

    submissions = await _codeforces_call(
        client, "user.status", {"handle": username, "from": 1, "count": 1000}, settings
    )
    if submissions is not None:
        solved = {
            (sub.get("problem", {}).get("contestId"), sub.get("problem", {}).get("index"))
            for sub in submissions
            if sub.get("verdict") == "OK"
        }
        stats["problems_solved"] = len(solved)

    return stats


async def _codeforces_call(
    client: httpx.AsyncClient,
    method: str,
    params: dict[str, Any],
    settings: Settings,
) -> list | None:
    try:
        response = await client.get(
            f"{CODEFORCES_API_URL}/{method}",
            params=params,
            headers=api_headers(settings),
            timeout=settings.official_api_timeout,
        )
        payload = parse_json(response)
        if isinstance(payload, dict) and payload.get("status") == "OK":
            return payload.get("result") or []
    except (httpx.HTTPError, FetchFailed) as e:
        logger.debug(f"Codeforces {method} failed: {e}")
    return None


# ==================== HackerRank ====================

async def fetch_hackerrank(client: httpx.AsyncClient, username: str, settings: Settings) -> dict[str, Any]:
    headers = {
        **browser_headers(settings),
        "Accept": "application/json",
        "Referer": "https://www.hackerrank.com/",
    }
    response = await client.get(
        f"{HACKERRANK_API_URL}/{username}",
        headers=headers,
        timeout=settings.official_api_timeout,
    )

    if response.status_code == 404:
        raise ProfileNotFound(username)
    if response.status_code != 200:
        raise FetchFailed(f"HackerRank hackers API returned {response.status_code}")

    payload = parse_json(response)
    model = payload.get("model") if isinstance(payload, dict) else None
    if not isinstance(model, dict):
        raise FetchFailed("HackerRank hackers API response without model")

    stats: dict[str, Any] = {
        "name": model.get("name") or username,
        "level": to_int(model.get("level")),
        "followers": to_int(model.get("followers_count")),
    }

    try:
        badges_response = await client.get(
            f"{HACKERRANK_API_URL}/{username}/badges",
            headers=headers,
            timeout=settings.official_api_timeout,
        )
        if badges_response.status_code == 200:
            badges = parse_json(badges_response).get("models") or []
            stats["badges"] = len(badges)
            stats["total_score"] = sum(to_int(badge.get("current_points")) for badge in badges)
    except (httpx.HTTPError, FetchFailed, AttributeError) as e:
        logger.debug(f"HackerRank badges fetch failed for {username}: {e}")

    return stats


# ==================== AtCoder ====================

async def fetch_atcoder(client: httpx.AsyncClient, username: str, settings: Settings) -> dict[str, Any]:
    response = await client.get(
        f"{ATCODER_URL}/{username}/history/json",
        headers={
            **browser_headers(settings),
            "Accept": "application/json",
            "Referer": f"{ATCODER_URL}/{username}",
        },
        timeout=settings.official_api_timeout,
    )

    if response.status_code == 404:
        raise ProfileNotFound(username)
    if response.status_code != 200:
        raise FetchFailed(f"AtCoder history returned {response.status_code}")

    history = parse_json(response)
    if not isinstance(history, list):
        raise FetchFailed("AtCoder history is not a list")

    rated = [contest for contest in history if contest.get("IsRated", True)]
    ratings = [to_int(contest.get("NewRating")) for contest in rated]
    rating = ratings[-1] if ratings else 0

    stats: dict[str, Any] = {
        "rating": rating,
        "max_rating": max(ratings) if ratings else 0,
        "rank": rank_from_rating(rating, ATCODER_RANKS) if ratings else "Unrated",
        "contests": len(rated),
        "recent_contests": [
            {
                "name": contest.get("ContestName") or contest.get("ContestScreenName") or "Contest",
                "rank": to_int(contest.get("Place")),
                "rating": to_int(contest.get("NewRating")),
                "date": contest.get("EndTime") or "",
            }
            for contest in reversed(history[-RECENT_CONTESTS_LIMIT:])
        ],
    }

    try:
        solved_response = await client.get(
            ATCODER_PROBLEMS_API_URL,
            params={"user": username},
            headers=api_headers(settings),
            timeout=settings.official_api_timeout,
        )
        if solved_response.status_code == 200:
            stats["problems_solved"] = to_int(parse_json(solved_response).get("count"))
    except (httpx.HTTPError, FetchFailed, AttributeError) as e:
        logger.debug(f"AtCoder Problems lookup failed for {username}: {e}")

    return stats
