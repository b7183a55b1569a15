"""Quick-win detection.

Flags items that can likely be cleared in a few minutes, using lexical
patterns only. Disqualifying patterns are checked first: a trailing question
mark or "approve" often sits next to a request that is real work.
"""

from __future__ import annotations

import re

from inbox_rank.models import EstimatedTime, Item, QuickWinResult

SHORT_MESSAGE_CHARS = 100

# Indicators of non-trivial work.
NOT_QUICK_WIN_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(meeting|schedule|calendar)\b", re.I),
    re.compile(r"\b(document|documentation|write up)\b", re.I),
    re.compile(r"\b(investigate|research|analyze)\b", re.I),
    re.compile(r"\b(implement|build|create|develop)\b", re.I),
    re.compile(r"\b(complex|complicated|detailed)\b", re.I),
    re.compile(r"\b(project|milestone|deadline)\b", re.I),
)

# Checked in order; the first match wins.
QUICK_WIN_PATTERNS: tuple[tuple[re.Pattern[str], str, EstimatedTime], ...] = (
    (
        re.compile(r"\b(yes|no|approve|reject|confirm|deny)\b.*\?", re.I),
        "Simple yes/no decision",
        EstimatedTime.TWO_MINUTES,
    ),
    (
        re.compile(r"\b(ack|acknowledge|acknowledged|received|got it)\b", re.I),
        "Acknowledgment needed",
        EstimatedTime.ONE_MINUTE,
    ),
    (
        re.compile(r"\bfyi\b|for your (information|awareness)", re.I),
        "FYI - no action needed",
        EstimatedTime.ONE_MINUTE,
    ),
    (
        re.compile(r"\b(quick question|one question)\b", re.I),
        "Quick question to answer",
        EstimatedTime.THREE_MINUTES,
    ),
    (
        re.compile(r"\b(please review|can you review)\b", re.I),
        "Quick review request",
        EstimatedTime.FIVE_MINUTES,
    ),
    (
        re.compile(r"\b(lgtm|looks good|approved|ship it)\b", re.I),
        "Already approved - just acknowledge",
        EstimatedTime.ONE_MINUTE,
    ),
)

# Substring keywords, scanned in order.
TIME_ESTIMATES: tuple[tuple[str, EstimatedTime], ...] = (
    ("1min", EstimatedTime.ONE_MINUTE),
    ("2min", EstimatedTime.TWO_MINUTES),
    ("3min", EstimatedTime.FIVE_MINUTES),
    ("5min", EstimatedTime.FIVE_MINUTES),
    ("quick", EstimatedTime.FIVE_MINUTES),
    ("brief", EstimatedTime.FIVE_MINUTES),
    ("short", EstimatedTime.FIVE_MINUTES),
    ("simple", EstimatedTime.FIVE_MINUTES),
    ("long", EstimatedTime.THIRTY_MINUTES),
    ("detailed", EstimatedTime.ONE_HOUR),
    ("complex", EstimatedTime.TWO_HOURS_PLUS),
)


def estimate_time(text: str) -> EstimatedTime:
    """Guess effort from duration keywords, then from text length."""

    for keyword, estimate in TIME_ESTIMATES:
        if keyword in text:
            return estimate

    if len(text) < 200:
        return EstimatedTime.FIVE_MINUTES
    if len(text) < 500:
        return EstimatedTime.FIFTEEN_MINUTES
    if len(text) < 1000:
        return EstimatedTime.THIRTY_MINUTES
    return EstimatedTime.ONE_HOUR


def detect_quick_win(subject: str | None = None, body_preview: str | None = None) -> QuickWinResult:
    """Decide whether a subject/body pair looks like a quick win.

    Args:
        subject: Item subject (may be None).
        body_preview: Truncated body text (may be None).

    Returns:
        QuickWinResult. Never raises.
    """

    text = f"{subject or ''} {body_preview or ''}".lower()

    for pattern in NOT_QUICK_WIN_PATTERNS:
        if pattern.search(text):
            return QuickWinResult(is_quick_win=False, reason=None, estimated_time=estimate_time(text))

    for pattern, reason, estimate in QUICK_WIN_PATTERNS:
        if pattern.search(text):
            return QuickWinResult(is_quick_win=True, reason=reason, estimated_time=estimate)

    if len(body_preview or "") < SHORT_MESSAGE_CHARS:
        return QuickWinResult(
            is_quick_win=True,
            reason="short message",
            estimated_time=EstimatedTime.THREE_MINUTES,
        )

    return QuickWinResult(is_quick_win=False, reason=None, estimated_time=estimate_time(text))


def detect_item_quick_win(item: Item) -> QuickWinResult:
    """Run quick-win detection on an item's subject and body preview."""
    return detect_quick_win(item.subject, item.body_preview)
