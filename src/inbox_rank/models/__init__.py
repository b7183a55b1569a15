"""Data models for InboxRank.

This module contains Pydantic models for items and triage results.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from inbox_rank.models.item import ContextMessage, Item, ItemSource, ItemType, ReadStatus, Sender


class Category(str, Enum):
    """Triage category assigned to an item."""

    ACTION_REQUIRED = "Action-Required"
    FYI = "FYI"
    DELEGATABLE = "Delegatable"
    SPAM = "Spam"
    ARCHIVE = "Archive"

    @classmethod
    def parse(cls, value: object) -> Category:
        """Build a Category from untrusted input.

        Anything that is not exactly one of the category values maps to FYI.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.FYI


class Priority(str, Enum):
    """Priority tier, P0 being the most urgent."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class EstimatedTime(str, Enum):
    """Closed set of effort estimates."""

    ONE_MINUTE = "1min"
    TWO_MINUTES = "2min"
    THREE_MINUTES = "3min"
    FIVE_MINUTES = "5min"
    FIFTEEN_MINUTES = "15min"
    THIRTY_MINUTES = "30min"
    ONE_HOUR = "1hr"
    TWO_HOURS_PLUS = "2hr+"


class ScoringContext(BaseModel):
    """Signals derived from an item that adjust its score."""

    model_config = ConfigDict(frozen=True)

    is_vip: bool = False
    is_overdue: bool = False
    is_due_today: bool = False
    is_high_priority_source: bool = False
    has_attachment: bool = False
    is_thread_reply: bool = False
    is_slack_dm: bool = False
    age_hours: float = 0.0


class ScoreModifier(BaseModel):
    """A single additive score adjustment."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: int


class ScoringResult(BaseModel):
    """Outcome of the deterministic scoring step."""

    model_config = ConfigDict(frozen=True)

    base_score: int
    modifiers: list[ScoreModifier] = Field(default_factory=list)
    total_score: int
    priority: Priority


class QuickWinResult(BaseModel):
    """Outcome of quick-win detection."""

    model_config = ConfigDict(frozen=True)

    is_quick_win: bool
    reason: str | None = None
    estimated_time: EstimatedTime


class CategorizationResult(BaseModel):
    """Final triage output for one item."""

    model_config = ConfigDict(frozen=True)

    item_id: str = Field(description="ID of the categorized item")
    category: Category = Field(description="Validated category")
    priority: Priority = Field(description="Priority tier from scoring")
    confidence: int = Field(ge=1, le=10, description="Model confidence (1-10)")
    quick_win: bool = Field(default=False, description="Actionable and quick to clear")
    quick_win_reason: str | None = Field(default=None)
    estimated_time: EstimatedTime
    reasoning: str = Field(description="Explanation for the category")
    suggested_action: str = Field(description="Suggested next step")
    scoring: ScoringResult


class TriageSummary(BaseModel):
    """Counts over a set of triage results."""

    total: int = 0
    by_priority: dict[Priority, int] = Field(
        default_factory=lambda: {p: 0 for p in Priority}
    )
    by_category: dict[Category, int] = Field(
        default_factory=lambda: {c: 0 for c in Category}
    )
    quick_wins: int = 0


__all__ = [
    "Category",
    "CategorizationResult",
    "ContextMessage",
    "EstimatedTime",
    "Item",
    "ItemSource",
    "ItemType",
    "Priority",
    "QuickWinResult",
    "ReadStatus",
    "ScoreModifier",
    "ScoringContext",
    "ScoringResult",
    "Sender",
    "TriageSummary",
]
