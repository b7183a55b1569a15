"""Triage pipeline: quick-win detection, scoring, categorization and batching."""

from .batch import BatchOptions, categorize_batch
from .categorizer import Categorizer
from .quickwin import detect_item_quick_win, detect_quick_win
from .scoring import (
    calculate_score,
    extract_scoring_context,
    priority_description,
    rank_results,
)

__all__ = [
    "BatchOptions",
    "Categorizer",
    "calculate_score",
    "categorize_batch",
    "detect_item_quick_win",
    "detect_quick_win",
    "extract_scoring_context",
    "priority_description",
    "rank_results",
]
