"""
Servicio de agregación - Resumen cross-platform de las stats de un estudiante

Funciones puras: no hacen I/O y siempre devuelven un resultado completo.
El resumen se recalcula desde cero en cada sync, nunca se actualiza
incrementalmente.

Reglas:
- Los conteos (problemas, contribuciones, contests) se suman entre plataformas
- El rating es el MÁXIMO entre plataformas con rating (se prefiere el
  rating máximo/histórico sobre el actual)
- Valores ausentes o no numéricos cuentan como 0
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from app.models.platform import (
    AggregatedStudentStats,
    DifficultyDistribution,
    SkillsAnalysis,
    SyncOutcome,
)
from app.platforms.base import to_int


@dataclass(frozen=True)
class Projection:
    """Qué campos de las stats de una plataforma alimentan cada total"""

    problems: tuple[str, ...] = ("problems_solved",)
    easy: tuple[str, ...] = ()
    medium: tuple[str, ...] = ()
    hard: tuple[str, ...] = ()
    contributions: tuple[str, ...] = ()
    contests: tuple[str, ...] = ("contests",)
    # En orden de preferencia: el primero > 0 gana
    rating: tuple[str, ...] = ()


DEFAULT_PROJECTION = Projection()

PROJECTIONS: dict[str, Projection] = {
    "leetcode": Projection(
        problems=("total_solved",),
        easy=("easy_solved",),
        medium=("medium_solved",),
        hard=("hard_solved",),
        rating=("contest_rating",),
    ),
    "github": Projection(problems=(), contests=(), contributions=("total_contributions",)),
    "codeforces": Projection(rating=("max_rating", "rating")),
    "codechef": Projection(rating=("highest_rating", "rating")),
    "atcoder": Projection(rating=("max_rating", "rating")),
    "hackerearth": Projection(rating=("max_rating", "rating")),
    "topcoder": Projection(problems=(), contests=("competitions",), rating=("max_rating", "rating")),
    "kaggle": Projection(problems=(), contests=("competitions",)),
    "exercism": Projection(problems=("completed_exercises",), contests=()),
    "hackerrank": Projection(problems=(), contests=()),
}

StatsSource = Union[Iterable[SyncOutcome], Mapping[str, Mapping[str, Any]]]


def _as_count(value: Any) -> int:
    if isinstance(value, (list, tuple, dict, set)):
        return len(value)
    return max(to_int(value), 0)


def _first_count(stats: Mapping[str, Any], fields: tuple[str, ...]) -> int:
    for field in fields:
        if stats.get(field) is not None:
            return _as_count(stats[field])
    return 0


def _best_rating(stats: Mapping[str, Any], fields: tuple[str, ...]) -> int:
    for field in fields:
        rating = to_int(stats.get(field))
        if rating > 0:
            return rating
    return 0


def _platform_stats(source: StatsSource) -> list[tuple[str, Mapping[str, Any]]]:
    if isinstance(source, Mapping):
        return [(platform_id, stats) for platform_id, stats in source.items() if stats]
    return [
        (outcome.platform_id, outcome.stats)
        for outcome in source
        if outcome.success and outcome.stats
    ]


def aggregate(source: StatsSource) -> AggregatedStudentStats:
    """
    Resumen de las stats de todas las plataformas.

    Args:
        source: lista de SyncOutcome (solo cuentan los exitosos con stats)
                o un dict platform_id -> stats

    Returns:
        AggregatedStudentStats con todos los campos (0 si no hay datos)
    """
    totals = AggregatedStudentStats()

    for platform_id, stats in _platform_stats(source):
        projection = PROJECTIONS.get(platform_id.lower(), DEFAULT_PROJECTION)

        totals.total_problems += _first_count(stats, projection.problems)
        totals.easy_problems += _first_count(stats, projection.easy)
        totals.medium_problems += _first_count(stats, projection.medium)
        totals.hard_problems += _first_count(stats, projection.hard)
        totals.github_contributions += _first_count(stats, projection.contributions)
        totals.contests_participated += _first_count(stats, projection.contests)
        totals.rating = max(totals.rating, _best_rating(stats, projection.rating))

    return totals


def _primary_languages(platform_stats: Mapping[str, Mapping[str, Any]], limit: int = 5) -> list[str]:
    languages = (platform_stats.get("github") or {}).get("languages") or {}

    if isinstance(languages, Mapping):
        ranked = sorted(languages.items(), key=lambda item: _as_count(item[1]), reverse=True)
        return [name for name, _ in ranked][:limit]

    if isinstance(languages, list):
        return list(dict.fromkeys(str(name) for name in languages))[:limit]

    return []


def _activity_level(stats: AggregatedStudentStats) -> str:
    activity = stats.total_problems + stats.github_contributions // 10 + stats.contests_participated * 5
    if activity < 50:
        return "Low"
    if activity < 200:
        return "Medium"
    if activity < 500:
        return "High"
    return "Very High"


def _overall_rank(stats: AggregatedStudentStats) -> str:
    if stats.total_problems < 50 and stats.rating < 1200:
        return "Beginner"
    if stats.total_problems < 200 and stats.rating < 1600:
        return "Intermediate"
    if stats.total_problems < 500 and stats.rating < 2000:
        return "Advanced"
    return "Expert"


def analyze_skills(
    stats: AggregatedStudentStats,
    platform_stats: Mapping[str, Mapping[str, Any]],
) -> SkillsAnalysis:
    """Lenguajes principales, distribución por dificultad, nivel de actividad y rango general"""
    return SkillsAnalysis(
        primary_languages=_primary_languages(platform_stats),
        difficulty_distribution=DifficultyDistribution(
            easy=stats.easy_problems,
            medium=stats.medium_problems,
            hard=stats.hard_problems,
        ),
        activity_level=_activity_level(stats),
        overall_rank=_overall_rank(stats),
    )
