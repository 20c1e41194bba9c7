# Application Stats Package
from .metrics_calculator import MetricsCalculator, StudyStats
from .service import StudyStatsService

__all__ = ["MetricsCalculator", "StudyStats", "StudyStatsService"]
