"""Input adapters that turn CSV files into competitor and statistics records."""

from .csv_files import (
    DEFAULT_COMPETITOR_MAPPING,
    DEFAULT_STATS_MAPPING,
    load_competitors_csv,
    load_period_stats_csv,
)

__all__ = [
    "DEFAULT_COMPETITOR_MAPPING",
    "DEFAULT_STATS_MAPPING",
    "load_competitors_csv",
    "load_period_stats_csv",
]
