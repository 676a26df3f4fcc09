from .backup import BackupService, backup_filename, validate_backup
from .export import ExportFormat, ExportService
from .statistics import (
    CategoryTotal,
    DailySummary,
    MonthlyTotal,
    PersonStat,
    Summary,
    category_breakdown,
    daily_breakdown,
    frequency_ranking,
    monthly_breakdown,
    monthly_trends,
    refund_stats,
    summarize,
)

__all__ = [
    "BackupService",
    "CategoryTotal",
    "DailySummary",
    "ExportFormat",
    "ExportService",
    "MonthlyTotal",
    "PersonStat",
    "Summary",
    "backup_filename",
    "category_breakdown",
    "daily_breakdown",
    "frequency_ranking",
    "monthly_breakdown",
    "monthly_trends",
    "refund_stats",
    "summarize",
    "validate_backup",
]
