from .user import User
from .platform import (
    PlatformConnection,
    SyncOutcome,
    SyncBatch,
    SyncSummary,
    AggregatedStudentStats,
    SkillsAnalysis,
    VerifyResult,
)

__all__ = [
    "User",
    "PlatformConnection",
    "SyncOutcome",
    "SyncBatch",
    "SyncSummary",
    "AggregatedStudentStats",
    "SkillsAnalysis",
    "VerifyResult",
]
