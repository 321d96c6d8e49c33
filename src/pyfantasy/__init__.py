"""Season-long fantasy league roster and scoring engine."""

__version__ = "0.1.0"
