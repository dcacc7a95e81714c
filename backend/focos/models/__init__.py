from .fire_reports import FireReport, ReportStatus, ReportSource, Intensity

__all__ = [
    "FireReport",
    "ReportStatus",
    "ReportSource",
    "Intensity",
]
