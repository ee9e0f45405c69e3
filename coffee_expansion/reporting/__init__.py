"""
Reporting Module
"""
from .emitter import (
    RankedCityReport,
    RecommendationReport,
    ReportFormat,
    ReportWarning,
    build_report,
    render,
    to_dataframe,
    write_report,
)

__all__ = [
    "RankedCityReport",
    "RecommendationReport",
    "ReportFormat",
    "ReportWarning",
    "build_report",
    "render",
    "to_dataframe",
    "write_report",
]
