"""Prompt contract for categorizing inbox items."""

from __future__ import annotations

from inbox_rank.models import Item, ItemSource

PROMPT_VERSION = "inboxrank-categorize-v1"

CATEGORY_DESCRIPTIONS = (
    "- Action-Required: Needs your direct action (request for decision, assigned task, question to answer)\n"
    "- FYI: Informational only, no action needed (status update, newsletter, notification)\n"
    "- Delegatable: Can be handed off to someone else (request within someone else's domain)\n"
    "- Spam: Unwanted or irrelevant (marketing, automated alerts you don't need)\n"
    "- Archive: Completed or no longer relevant (old thread, resolved issue)\n"
)

SYSTEM_PROMPT = (
    "You triage a single person's inbox. Categorize each item into exactly one category.\n\n"
    "Categories:\n"
    f"{CATEGORY_DESCRIPTIONS}\n"
    "Return ONLY valid JSON. No markdown. No code fences. No commentary.\n"
    "Response shape:\n"
    "{\n"
    '  "category": "Action-Required|FYI|Delegatable|Spam|Archive",\n'
    '  "confidence": 1-10,\n'
    '  "reasoning": "Brief explanation",\n'
    '  "suggestedAction": "What to do next"\n'
    "}\n"
    "The category MUST be exactly one of the allowed values (case-sensitive)."
)


def build_categorization_prompt(
    item: Item,
    is_vip: bool,
    *,
    body_chars: int = 500,
    thread_limit: int = 3,
) -> str:
    """Build the per-item user prompt.

    Args:
        item: Item to categorize.
        is_vip: Whether the sender is a VIP.
        body_chars: Cap on body preview length.
        thread_limit: Number of most recent thread messages to include.

    Returns:
        Prompt string.
    """

    metadata = item.metadata
    lines = [
        "Categorize this inbox item. Return ONLY a JSON object.",
        "",
        "## Item Details",
        f"- Source: {item.source.value}",
        f"- From: {item.sender.name or 'Unknown'} <{item.sender.address or 'unknown'}>",
        f"- VIP: {'Yes' if is_vip else 'No'}",
        f"- Subject: {item.subject or '(no subject)'}",
        f"- Received: {item.timestamp.isoformat()}",
        f"- Type: {item.item_type.value}",
    ]

    if item.source.is_helpdesk:
        lines.append(f"- Status: {metadata.get('status') or 'unknown'}")
        lines.append(f"- Priority: {metadata.get('priority') or 'unknown'}")
        if metadata.get("dueDate"):
            lines.append(f"- Due Date: {metadata['dueDate']}")

    if item.source is ItemSource.SLACK:
        channel = metadata.get("channelName") or metadata.get("channelId") or "unknown"
        lines.append(f"- Channel: {channel}")
        lines.append(f"- Channel Type: {metadata.get('channelType') or 'unknown'}")

    body = (item.body_preview or item.body or "")[:body_chars].strip()
    lines += ["", "## Content Preview", body or "(empty)", "", "## Thread Context"]

    recent = item.thread_context[-thread_limit:] if thread_limit > 0 else []
    if recent:
        for msg in recent:
            lines.append(f"- {msg.sender.display_name}: {msg.body[:200]}")
    else:
        lines.append("(no thread context)")

    return "\n".join(lines) + "\n"
