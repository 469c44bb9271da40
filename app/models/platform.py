from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class PlatformConnection(BaseModel):
    """Cuenta vinculada de un estudiante en una plataforma externa"""

    platform_id: str
    username: str  # Tal cual lo ingresó el usuario (puede ser la URL del perfil)
    platform_url: Optional[str] = None

    linked_at: datetime
    last_synced_at: Optional[datetime] = None

    is_active: bool = True
    cached_stats: Optional[dict[str, Any]] = None

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def stats_require_sync_timestamp(self):
        # Stats sin last_synced_at no prueban haber sido descargadas de verdad
        if self.cached_stats is not None and self.last_synced_at is None:
            raise ValueError("cached_stats requires last_synced_at")
        return self


class SyncOutcome(BaseModel):
    """Resultado del intento de sync de una plataforma (no se persiste)"""

    platform_id: str
    success: bool
    stats: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    fetched_at: datetime


class SyncSummary(BaseModel):
    total: int
    successful: int
    failed: int


class AggregatedStudentStats(BaseModel):
    """Resumen cross-platform del estudiante. Se recalcula completo en cada sync."""

    total_problems: int = 0
    easy_problems: int = 0
    medium_problems: int = 0
    hard_problems: int = 0
    github_contributions: int = 0
    contests_participated: int = 0
    rating: int = 0


class DifficultyDistribution(BaseModel):
    easy: int = 0
    medium: int = 0
    hard: int = 0


class SkillsAnalysis(BaseModel):
    primary_languages: list[str] = Field(default_factory=list)
    difficulty_distribution: DifficultyDistribution = Field(default_factory=DifficultyDistribution)
    activity_level: str = "Low"  # Low | Medium | High | Very High
    overall_rank: str = "Beginner"  # Beginner | Intermediate | Advanced | Expert


class SyncBatch(BaseModel):
    """Lo que devuelve un sync completo: un resultado por plataforma + el agregado"""

    results: list[SyncOutcome]
    summary: SyncSummary
    stats: AggregatedStudentStats
    synced_at: datetime


class VerifyResult(BaseModel):
    platform: str
    username: str
    verified: bool
    message: str
    stats: Optional[dict[str, Any]] = None


class PlatformInfo(BaseModel):
    """Entrada del catálogo de plataformas con adapter dedicado"""

    id: str
    name: str
    example_url: Optional[str] = None


# ============================================
# Requests / responses de la API
# ============================================

class LinkPlatformRequest(BaseModel):
    platform: str
    username: str
    platform_url: Optional[str] = None


class LinkPlatformResponse(BaseModel):
    success: bool
    platform: str
    username: str
    message: str


class VerifyPlatformRequest(BaseModel):
    platform: str
    username: str


class PlatformsOverview(BaseModel):
    platforms: dict[str, PlatformConnection]
    stats: AggregatedStudentStats
    stats_updated_at: Optional[datetime] = None
    skills: SkillsAnalysis
