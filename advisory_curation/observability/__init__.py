"""
Observability layer for advisory curation.

Main exports:
- CurationMetrics: Tracks validator decisions for a curation run
- CurationReporter: Generates Markdown summaries
"""
from .metrics import CurationMetrics
from .reporter import CurationReporter

__all__ = [
    "CurationMetrics",
    "CurationReporter",
]
