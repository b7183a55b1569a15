"""AI categorization of a single inbox item.

The inference call is the only nondeterministic step. Its output is validated
into a Category before anything else sees it, and every failure collapses into
a deterministic FYI fallback so callers never need to handle exceptions.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional

import structlog

from inbox_rank.config import Settings
from inbox_rank.inference import InferenceClient, InferenceResult
from inbox_rank.models import CategorizationResult, Category, Item
from inbox_rank.triage.prompt import PROMPT_VERSION, SYSTEM_PROMPT, build_categorization_prompt
from inbox_rank.triage.quickwin import detect_item_quick_win
from inbox_rank.triage.scoring import calculate_score, extract_scoring_context

logger = structlog.get_logger()

DEFAULT_CONFIDENCE = 5
DEFAULT_REASONING = "No reasoning provided"
DEFAULT_SUGGESTED_ACTION = "Review and respond"
FALLBACK_SUGGESTED_ACTION = "Review manually"


def clamp_confidence(value: Any) -> int:
    """Coerce a model-supplied confidence into [1, 10]; unusable values give 5."""

    if isinstance(value, bool) or value is None:
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_CONFIDENCE
    if not math.isfinite(number):
        return DEFAULT_CONFIDENCE
    return int(min(10, max(1, round(number))))


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


class Categorizer:
    """Categorize items through an inference client and score them."""

    def __init__(
        self,
        inference_client: InferenceClient,
        settings: Optional[Settings] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Create a categorizer.

        Args:
            inference_client: Collaborator implementing ``infer``.
            settings: Application settings. If None, uses default settings.
            now: Fixed reference time for scoring. If None, the clock is read per item.
        """
        from inbox_rank.config import get_settings

        self.inference_client = inference_client
        self.settings = settings or get_settings()
        self._now = now

    async def categorize_item(
        self,
        item: Item,
        is_vip: bool,
        verbose: bool = False,
    ) -> CategorizationResult:
        """Categorize one item. Never raises.

        Args:
            item: Item to categorize.
            is_vip: Whether the sender is a VIP.
            verbose: Log per-item progress at info level.

        Returns:
            A complete CategorizationResult.
        """
        log = logger.bind(item_id=item.id, source=item.source.value, prompt_version=PROMPT_VERSION)
        if verbose:
            log.info("categorizing_item")
        else:
            log.debug("categorizing_item")

        try:
            result = await self.inference_client.infer(
                SYSTEM_PROMPT,
                build_categorization_prompt(
                    item,
                    is_vip,
                    body_chars=self.settings.body_preview_chars,
                    thread_limit=self.settings.thread_context_limit,
                ),
                response_format="json",
                timeout=self.settings.inference_timeout,
            )
        except Exception as exc:  # noqa: BLE001
            log.exception("categorize_inference_raised", error=str(exc))
            return self._fallback(item, is_vip, str(exc) or type(exc).__name__)

        if not isinstance(result, InferenceResult) or not result.success:
            error = getattr(result, "error", None) or "inference failed"
            log.warning("categorize_inference_failed", error=error)
            return self._fallback(item, is_vip, error)

        if not isinstance(result.data, dict):
            log.warning("categorize_no_json", raw_length=len(result.raw or ""))
            return self._fallback(item, is_vip, "No JSON found in AI response")

        return self._assemble(item, is_vip, result.data)

    def _assemble(self, item: Item, is_vip: bool, data: dict[str, Any]) -> CategorizationResult:
        raw_category = data.get("category")
        category = Category.parse(raw_category)
        if category.value != raw_category:
            logger.info("category_coerced", item_id=item.id, raw_category=str(raw_category))

        scoring = calculate_score(category, extract_scoring_context(item, is_vip, now=self._now))
        quick = detect_item_quick_win(item)
        quick_win = quick.is_quick_win and category is Category.ACTION_REQUIRED

        return CategorizationResult(
            item_id=item.id,
            category=category,
            priority=scoring.priority,
            confidence=clamp_confidence(data.get("confidence")),
            quick_win=quick_win,
            quick_win_reason=quick.reason if quick_win else None,
            estimated_time=quick.estimated_time,
            reasoning=_text(data.get("reasoning"), DEFAULT_REASONING),
            suggested_action=_text(data.get("suggestedAction"), DEFAULT_SUGGESTED_ACTION),
            scoring=scoring,
        )

    def _fallback(self, item: Item, is_vip: bool, cause: str) -> CategorizationResult:
        scoring = calculate_score(Category.FYI, extract_scoring_context(item, is_vip, now=self._now))
        quick = detect_item_quick_win(item)

        return CategorizationResult(
            item_id=item.id,
            category=Category.FYI,
            priority=scoring.priority,
            confidence=1,
            quick_win=False,
            quick_win_reason=None,
            estimated_time=quick.estimated_time,
            reasoning=f"Error during categorization: {cause}",
            suggested_action=FALLBACK_SUGGESTED_ACTION,
            scoring=scoring,
        )
