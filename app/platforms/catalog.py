"""
Descriptor table for every platform with a dedicated adapter.

Adding a platform means adding a descriptor here; the fetch chain itself
never changes per platform.
"""

from app.platforms import official
from app.platforms.base import DEFAULT_ABSENCE_MARKERS, PlatformDescriptor


CP_RATING_API = "https://cp-rating-api.vercel.app/{platform}/{{username}}"
COMPETITIVE_CODING_API = "https://competitive-coding-api.herokuapp.com/api/{platform}/{{username}}"
CP_API = "https://cp-api.vercel.app/{platform}/{{username}}"


def _mirrors(platform: str, *templates: str) -> tuple[str, ...]:
    return tuple(template.format(platform=platform) for template in templates)


LEETCODE = PlatformDescriptor(
    platform_id="leetcode",
    display_name="LeetCode",
    metrics={
        "total_solved": 0,
        "easy_solved": 0,
        "medium_solved": 0,
        "hard_solved": 0,
        "ranking": 0,
        "contribution_points": 0,
        "reputation": 0,
        "contests": 0,
        "contest_rating": 0,
    },
    url_patterns=(r"leetcode\.com/(?:u/)?([^/?#\s]+)",),
    official=official.fetch_leetcode,
    mirror_urls=(
        "https://leetcode-stats-api.herokuapp.com/{username}",
        "https://alfa-leetcode-api.onrender.com/{username}/solved",
    ),
    mirror_aliases={
        "total_solved": ("totalSolved", "solvedProblem"),
        "easy_solved": ("easySolved",),
        "medium_solved": ("mediumSolved",),
        "hard_solved": ("hardSolved",),
        "contribution_points": ("contributionPoints",),
    },
    profile_urls=("https://leetcode.com/u/{username}/",),
    absence_markers=DEFAULT_ABSENCE_MARKERS + ("this user does not exist",),
    html_fields={
        "total_solved": (r'"solvedProblem"\s*:\s*(\d+)', r"(\d+)\s*/\s*\d+\s+Solved"),
        "easy_solved": (r"Easy\s+(\d+)\s*/",),
        "medium_solved": (r"Med\.?(?:ium)?\s+(\d+)\s*/",),
        "hard_solved": (r"Hard\s+(\d+)\s*/",),
    },
)

GITHUB = PlatformDescriptor(
    platform_id="github",
    display_name="GitHub",
    metrics={
        "public_repos": 0,
        "followers": 0,
        "following": 0,
        "total_contributions": 0,
        "languages": {},
        "repositories": [],
    },
    url_patterns=(r"github\.com/([^/?#\s]+)",),
    official=official.fetch_github,
    profile_urls=("https://github.com/{username}",),
    html_fields={
        "total_contributions": (r"([\d,]+)\s+contributions\s+in\s+the\s+last\s+year",),
        "followers": (r"([\d,]+)\s+followers",),
        "following": (r"([\d,]+)\s+following",),
        "public_repos": (r"Repositories\s+([\d,]+)",),
    },
)

CODEFORCES = PlatformDescriptor(
    platform_id="codeforces",
    display_name="Codeforces",
    metrics={
        "rating": 0,
        "max_rating": 0,
        "rank": "unrated",
        "max_rank": "unrated",
        "contribution": 0,
        "friend_of_count": 0,
        "problems_solved": 0,
        "contests": 0,
        "recent_contests": [],
    },
    url_patterns=(r"codeforces\.com/profile/([^/?#\s]+)",),
    official=official.fetch_codeforces,
    mirror_urls=_mirrors("codeforces", CP_RATING_API),
    mirror_aliases={
        "max_rating": ("maxRating", "highest_rating"),
        "problems_solved": ("problemsSolved", "solved"),
    },
    profile_urls=("https://codeforces.com/profile/{username}",),
    rank_table=official.CODEFORCES_RANKS,
    html_fields={
        "rating": (r"Contest rating:\s*(\d+)",),
        "max_rating": (r"max\.\s*[a-z ]*,?\s*(\d+)",),
        "problems_solved": (r"([\d,]+)\s+problems?\s+solved",),
    },
)

CODECHEF = PlatformDescriptor(
    platform_id="codechef",
    display_name="CodeChef",
    metrics={
        "rating": 0,
        "highest_rating": 0,
        "stars": "",
        "global_rank": 0,
        "country_rank": 0,
        "problems_solved": 0,
        "contests": 0,
    },
    url_patterns=(r"codechef\.com/users/([^/?#\s]+)",),
    mirror_urls=(
        "https://codechef-api.vercel.app/handle/{username}",
        *_mirrors("codechef", CP_RATING_API, COMPETITIVE_CODING_API),
    ),
    mirror_aliases={
        "rating": ("currentRating",),
        "highest_rating": ("highestRating", "max_rating"),
        "global_rank": ("globalRank",),
        "country_rank": ("countryRank",),
        "problems_solved": ("fully_solved", "problemsSolved", "totalProblemsSolved"),
    },
    profile_urls=("https://www.codechef.com/users/{username}",),
    html_fields={
        "rating": (r"rating-number[^>]*>\s*(\d+)", r"Rating\s*(\d{3,4})"),
        "highest_rating": (r"Highest Rating\s*\(?\s*(\d+)",),
        "global_rank": (r"Global Rank\s*([\d,]+)",),
        "country_rank": (r"Country Rank\s*([\d,]+)",),
        "problems_solved": (r"Total Problems Solved:\s*(\d+)",),
        "contests": (r"No\. of Contests Participated:\s*(\d+)",),
    },
)

HACKERRANK = PlatformDescriptor(
    platform_id="hackerrank",
    display_name="HackerRank",
    metrics={
        "badges": 0,
        "certifications": 0,
        "level": 0,
        "followers": 0,
        "total_score": 0,
    },
    url_patterns=(r"hackerrank\.com/(?:profile/)?([^/?#\s]+)",),
    official=official.fetch_hackerrank,
    mirror_urls=_mirrors("hackerrank", COMPETITIVE_CODING_API, CP_API),
    profile_urls=("https://www.hackerrank.com/profile/{username}",),
    html_fields={
        "badges": (r"(\d+)\s+badges?",),
        "certifications": (r"(\d+)\s+certifications?",),
    },
)

HACKEREARTH = PlatformDescriptor(
    platform_id="hackerearth",
    display_name="HackerEarth",
    metrics={
        "rating": 0,
        "max_rating": 0,
        "global_rank": 0,
        "country_rank": 0,
        "problems_solved": 0,
        "contests": 0,
    },
    url_patterns=(r"hackerearth\.com/@([^/?#\s]+)", r"hackerearth\.com/users/([^/?#\s]+)"),
    mirror_urls=(
        "https://www.hackerearth.com/api/user/{username}/",
        *_mirrors("hackerearth", COMPETITIVE_CODING_API),
    ),
    mirror_aliases={
        "max_rating": ("maxRating", "highest_rating"),
        "problems_solved": ("problemsSolved", "solved"),
    },
    profile_urls=("https://www.hackerearth.com/@{username}/",),
    html_fields={
        "rating": (r"Rating\s*(\d+)",),
        "problems_solved": (r"Problems Solved\s*(\d+)", r"(\d+)\s+problems solved"),
    },
)

GEEKSFORGEEKS = PlatformDescriptor(
    platform_id="geeksforgeeks",
    display_name="GeeksforGeeks",
    metrics={
        "coding_score": 0,
        "problems_solved": 0,
        "institute_rank": 0,
        "articles_published": 0,
        "current_streak": 0,
        "longest_streak": 0,
        "potds_solved": 0,
    },
    url_patterns=(
        r"geeksforgeeks\.org/user/([^/?#\s]+)",
        r"geeksforgeeks\.org/profile/([^/?#\s]+)",
    ),
    mirror_urls=_mirrors("geeksforgeeks", COMPETITIVE_CODING_API, CP_API),
    mirror_aliases={
        "coding_score": ("codingScore", "score"),
        "problems_solved": ("totalProblemsSolved", "problemsSolved"),
        "institute_rank": ("instituteRank",),
    },
    profile_urls=(
        "https://auth.geeksforgeeks.org/user/{username}/profile",
        "https://www.geeksforgeeks.org/user/{username}",
    ),
    html_fields={
        "coding_score": (r"Coding Score\s*(\d+)", r'"score"\s*:\s*(\d+)'),
        "problems_solved": (r"Problems? Solved\s*(\d+)", r'"total_problems_solved"\s*:\s*(\d+)'),
        "institute_rank": (r"Institute Rank\s*(\d+)",),
        "articles_published": (r"Articles Published\s*(\d+)",),
        "current_streak": (r"(\d+)\s*Days?\s+Current Streak", r"Current Streak\s*(\d+)"),
        "longest_streak": (r"Longest Streak\s*(\d+)",),
        "potds_solved": (r"POTDs? Solved\s*(\d+)",),
    },
)

ATCODER = PlatformDescriptor(
    platform_id="atcoder",
    display_name="AtCoder",
    metrics={
        "rating": 0,
        "max_rating": 0,
        "rank": "Unrated",
        "problems_solved": 0,
        "contests": 0,
        "recent_contests": [],
    },
    url_patterns=(r"atcoder\.jp/users/([^/?#\s]+)",),
    official=official.fetch_atcoder,
    mirror_urls=_mirrors("atcoder", CP_RATING_API, COMPETITIVE_CODING_API),
    mirror_aliases={"max_rating": ("maxRating", "highest_rating")},
    profile_urls=("https://atcoder.jp/users/{username}",),
    rank_table=official.ATCODER_RANKS,
    absence_markers=DEFAULT_ABSENCE_MARKERS + ("ユーザーが見つかりません",),
    html_fields={
        "rating": (r"Rating\s*(\d+)",),
        "max_rating": (r"Highest Rating\s*(\d+)",),
        "contests": (r"Rated Matches\s*(\d+)",),
    },
)

SPOJ = PlatformDescriptor(
    platform_id="spoj",
    display_name="SPOJ",
    metrics={
        "problems_solved": 0,
        "score": 0,
        "world_rank": 0,
        "country_rank": 0,
    },
    url_patterns=(r"spoj\.com/users/([^/?#\s]+)",),
    mirror_urls=_mirrors("spoj", COMPETITIVE_CODING_API, CP_API),
    mirror_aliases={"problems_solved": ("solved",), "world_rank": ("rank",)},
    profile_urls=("https://www.spoj.com/users/{username}/",),
    html_fields={
        "problems_solved": (r"Problems solved:\s*(\d+)",),
        "world_rank": (r"World Rank:\s*#?([\d,]+)",),
        "score": (r"\(([\d.]+)\s+points\)",),
    },
)

KATTIS = PlatformDescriptor(
    platform_id="kattis",
    display_name="Kattis",
    metrics={
        "problems_solved": 0,
        "score": 0,
        "rank": 0,
    },
    url_patterns=(r"kattis\.com/users/([^/?#\s]+)",),
    mirror_urls=_mirrors("kattis", COMPETITIVE_CODING_API, CP_API),
    profile_urls=("https://open.kattis.com/users/{username}",),
    html_fields={
        "rank": (r"Rank\s*([\d,]+)",),
        "score": (r"Score\s*([\d.,]+)",),
        "problems_solved": (r"([\d,]+)\s+(?:problems? )?solved",),
    },
)

TOPCODER = PlatformDescriptor(
    platform_id="topcoder",
    display_name="TopCoder",
    metrics={
        "rating": 0,
        "max_rating": 0,
        "rank": "",
        "competitions": 0,
        "wins": 0,
    },
    url_patterns=(r"topcoder\.com/members/([^/?#\s]+)",),
    mirror_urls=_mirrors("topcoder", CP_RATING_API, COMPETITIVE_CODING_API, CP_API),
    mirror_aliases={"max_rating": ("maxRating", "highest_rating")},
    profile_urls=("https://www.topcoder.com/members/{username}",),
    html_fields={
        "rating": (r"Rating\s*(\d+)",),
        "competitions": (r"(\d+)\s+Competitions",),
        "wins": (r"(\d+)\s+Wins",),
    },
)

INTERVIEWBIT = PlatformDescriptor(
    platform_id="interviewbit",
    display_name="InterviewBit",
    metrics={
        "score": 0,
        "rank": 0,
        "problems_solved": 0,
        "streak_days": 0,
    },
    url_patterns=(r"interviewbit\.com/profile/([^/?#\s]+)",),
    mirror_urls=_mirrors("interviewbit", CP_RATING_API, COMPETITIVE_CODING_API, CP_API),
    mirror_aliases={"streak_days": ("streak",)},
    profile_urls=("https://www.interviewbit.com/profile/{username}",),
    html_fields={
        "score": (r"Score\s*([\d,]+)",),
        "rank": (r"Rank\s*#?([\d,]+)",),
        "problems_solved": (r"Problems Solved\s*(\d+)",),
        "streak_days": (r"(\d+)\s+Days? Streak", r"Streak\s*(\d+)"),
    },
)

CSES = PlatformDescriptor(
    platform_id="cses",
    display_name="CSES",
    metrics={
        "problems_solved": 0,
        "total_problems": 0,
        "completion_rate": 0,
    },
    url_patterns=(r"cses\.fi/user/([^/?#\s]+)",),
    mirror_urls=_mirrors("cses", CP_RATING_API, COMPETITIVE_CODING_API, CP_API),
    profile_urls=("https://cses.fi/user/{username}",),
    html_fields={
        "problems_solved": (r"Solved tasks:?\s*(\d+)", r"(\d+)\s*/\s*\d+\s+solved"),
        "total_problems": (r"\d+\s*/\s*(\d+)",),
    },
)

CODESTUDIO = PlatformDescriptor(
    platform_id="codestudio",
    display_name="Code360 by Coding Ninjas",
    metrics={
        "problems_solved": 0,
        "score": 0,
        "rank": 0,
        "streak_days": 0,
    },
    url_patterns=(
        r"codingninjas\.com/studio/profile/([^/?#\s]+)",
        r"naukri\.com/code360/profile/([^/?#\s]+)",
    ),
    mirror_urls=(
        *_mirrors("codestudio", CP_RATING_API, COMPETITIVE_CODING_API, CP_API),
        *_mirrors("codingninjas", COMPETITIVE_CODING_API),
    ),
    mirror_aliases={"streak_days": ("streak", "currentStreak")},
    profile_urls=("https://www.codingninjas.com/studio/profile/{username}",),
    html_fields={
        "problems_solved": (r"Problems? solved\s*(\d+)", r"(\d+)\s+problems? solved"),
        "score": (r"Score\s*([\d,]+)",),
        "streak_days": (r"(\d+)\s+days? streak",),
    },
)

EXERCISM = PlatformDescriptor(
    platform_id="exercism",
    display_name="Exercism",
    metrics={
        "completed_exercises": 0,
        "languages": [],
        "reputation": 0,
        "badges": 0,
    },
    url_patterns=(r"exercism\.org/profiles/([^/?#\s]+)", r"exercism\.io/profiles/([^/?#\s]+)"),
    mirror_urls=_mirrors("exercism", COMPETITIVE_CODING_API, CP_API),
    mirror_aliases={"completed_exercises": ("solutions", "exercisesCompleted")},
    profile_urls=("https://exercism.org/profiles/{username}",),
    html_fields={
        "completed_exercises": (r"([\d,]+)\s+(?:exercises|solutions)\s+(?:completed|published)",),
        "reputation": (r"([\d,]+)\s+reputation",),
        "badges": (r"([\d,]+)\s+badges",),
    },
)

KAGGLE = PlatformDescriptor(
    platform_id="kaggle",
    display_name="Kaggle",
    metrics={
        "tier": "",
        "competitions": 0,
        "datasets": 0,
        "notebooks": 0,
        "discussions": 0,
    },
    url_patterns=(r"kaggle\.com/([^/?#\s]+)",),
    mirror_urls=(
        "https://www.kaggle.com/api/v1/users/{username}",
        *_mirrors("kaggle", CP_RATING_API, COMPETITIVE_CODING_API, CP_API),
    ),
    mirror_aliases={
        "tier": ("performanceTier",),
        "competitions": ("competitionsCount", "totalCompetitions"),
        "datasets": ("datasetsCount",),
        "notebooks": ("kernelsCount", "notebooksCount"),
        "discussions": ("discussionsCount",),
    },
    profile_urls=("https://www.kaggle.com/{username}",),
    html_fields={
        "competitions": (r"Competitions\s*\(?(\d+)",),
        "datasets": (r"Datasets\s*\(?(\d+)",),
        "notebooks": (r"(?:Notebooks|Code)\s*\(?(\d+)",),
        "discussions": (r"Discussions?\s*\(?(\d+)",),
    },
)

UVA = PlatformDescriptor(
    platform_id="uva",
    display_name="UVa Online Judge",
    metrics={
        "problems_solved": 0,
        "submissions": 0,
        "rank": 0,
    },
    url_patterns=(r"uhunt\.onlinejudge\.org/id/([^/?#\s]+)",),
    mirror_urls=_mirrors("uva", COMPETITIVE_CODING_API, CP_API),
    mirror_aliases={"problems_solved": ("solved", "ac")},
    profile_urls=("https://uhunt.onlinejudge.org/id/{username}",),
    html_fields={
        "problems_solved": (r"Solved\s*:?\s*(\d+)",),
        "submissions": (r"Submissions\s*:?\s*(\d+)",),
        "rank": (r"Rank\s*:?\s*(\d+)",),
    },
)


DESCRIPTORS: dict[str, PlatformDescriptor] = {
    descriptor.platform_id: descriptor
    for descriptor in (
        LEETCODE,
        GITHUB,
        CODEFORCES,
        CODECHEF,
        HACKERRANK,
        HACKEREARTH,
        GEEKSFORGEEKS,
        ATCODER,
        SPOJ,
        KATTIS,
        TOPCODER,
        INTERVIEWBIT,
        CSES,
        CODESTUDIO,
        EXERCISM,
        KAGGLE,
        UVA,
    )
}
