"""Priority scoring.

Deterministic: the category comes from the categorizer, every other signal
is read from the item itself. No AI here.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, time
from typing import Any

from inbox_rank.models import (
    Category,
    CategorizationResult,
    Item,
    ItemSource,
    Priority,
    ScoreModifier,
    ScoringContext,
    ScoringResult,
)
from inbox_rank.utils import ensure_aware, parse_datetime

BASE_SCORES: dict[Category, int] = {
    Category.ACTION_REQUIRED: 60,
    Category.DELEGATABLE: 40,
    Category.FYI: 20,
    Category.SPAM: 0,
    Category.ARCHIVE: 0,
}
DEFAULT_BASE_SCORE = 20

# Inclusive lower bounds, highest first.
PRIORITY_THRESHOLDS: tuple[tuple[int, Priority], ...] = (
    (80, Priority.P0),
    (60, Priority.P1),
    (40, Priority.P2),
)

OLD_ITEM_HOURS = 48

PRIORITY_ORDER: dict[Priority, int] = {p: i for i, p in enumerate(Priority)}

_PRIORITY_DESCRIPTIONS: dict[Priority, str] = {
    Priority.P0: "Critical/Urgent - Immediate (< 1 hour)",
    Priority.P1: "High priority - Today",
    Priority.P2: "Normal - This week",
    Priority.P3: "Low priority - When convenient",
}

_HIGH_PRIORITY_FIELDS = ("priority", "importance", "urgency")
_HIGH_PRIORITY_VALUES = frozenset({"high", "urgent"})


def priority_for_score(total_score: int) -> Priority:
    for threshold, priority in PRIORITY_THRESHOLDS:
        if total_score >= threshold:
            return priority
    return Priority.P3


def calculate_score(category: Category | str, context: ScoringContext) -> ScoringResult:
    """Score an item from its category and derived context.

    Args:
        category: Validated category. Unknown values score as DEFAULT_BASE_SCORE.
        context: Signals from extract_scoring_context.

    Returns:
        ScoringResult with modifiers in a fixed order.
    """

    try:
        base_score = BASE_SCORES[Category(category)]
    except ValueError:
        base_score = DEFAULT_BASE_SCORE

    modifiers: list[ScoreModifier] = []

    if context.is_vip:
        modifiers.append(ScoreModifier(name="VIP sender", value=30))
    if context.is_overdue:
        modifiers.append(ScoreModifier(name="Overdue", value=25))
    if context.is_due_today and not context.is_overdue:
        modifiers.append(ScoreModifier(name="Due today", value=15))
    if context.is_high_priority_source:
        modifiers.append(ScoreModifier(name="High priority (source)", value=20))
    if context.has_attachment:
        modifiers.append(ScoreModifier(name="Has attachment", value=5))
    if context.is_thread_reply:
        modifiers.append(ScoreModifier(name="Thread reply", value=10))
    if context.is_slack_dm:
        modifiers.append(ScoreModifier(name="Slack DM", value=10))
    if context.age_hours > OLD_ITEM_HOURS:
        modifiers.append(ScoreModifier(name="Old item", value=5))

    total_score = base_score + sum(m.value for m in modifiers)

    return ScoringResult(
        base_score=base_score,
        modifiers=modifiers,
        total_score=total_score,
        priority=priority_for_score(total_score),
    )


def _due_flags(due_raw: Any, now: datetime) -> tuple[bool, bool]:
    due = parse_datetime(due_raw)
    if due is None:
        return False, False

    due = ensure_aware(due, now.tzinfo)
    day_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    day_end = datetime.combine(now.date(), time.max, tzinfo=now.tzinfo)

    is_overdue = due < day_start
    is_due_today = not is_overdue and due <= day_end
    return is_overdue, is_due_today


def _is_high_priority(metadata: dict[str, Any]) -> bool:
    for field in _HIGH_PRIORITY_FIELDS:
        value = metadata.get(field)
        if isinstance(value, str) and value.strip().lower() in _HIGH_PRIORITY_VALUES:
            return True
    return False


def extract_scoring_context(item: Item, is_vip: bool, now: datetime | None = None) -> ScoringContext:
    """Derive scoring signals from an item.

    Missing or malformed metadata resolves to False; this never raises.

    Args:
        item: The item being scored.
        is_vip: Externally resolved VIP flag for the sender.
        now: Reference time. Defaults to the current local time.
    """

    now = ensure_aware(now) if now is not None else datetime.now().astimezone()
    metadata = item.metadata

    is_overdue, is_due_today = _due_flags(metadata.get("dueDate"), now)

    attachments = metadata.get("attachments")
    has_attachment = metadata.get("hasAttachments") is True or (
        isinstance(attachments, list) and len(attachments) > 0
    )

    is_slack_dm = item.source is ItemSource.SLACK and (
        metadata.get("channelType") == "im" or metadata.get("isDm") is True
    )

    age_hours = (now - item.timestamp).total_seconds() / 3600

    return ScoringContext(
        is_vip=bool(is_vip),
        is_overdue=is_overdue,
        is_due_today=is_due_today,
        is_high_priority_source=_is_high_priority(metadata),
        has_attachment=has_attachment,
        is_thread_reply=bool(item.thread_id) or len(item.thread_context) > 0,
        is_slack_dm=is_slack_dm,
        age_hours=age_hours,
    )


def priority_description(priority: Priority | str) -> str:
    """Human-readable meaning of a priority tier."""
    try:
        return _PRIORITY_DESCRIPTIONS[Priority(priority)]
    except ValueError:
        return "Unknown priority"


def rank_results(results: Iterable[CategorizationResult]) -> list[CategorizationResult]:
    """Sort results P0 first; equal tiers keep their order."""
    return sorted(results, key=lambda r: PRIORITY_ORDER[r.priority])
