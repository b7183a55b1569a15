"""Batch categorization.

Items are processed in fixed-size chunks. Each chunk fans out concurrently and
is joined before the next one starts, with a fixed pause in between. This caps
concurrent load on the inference service at ``batch_size`` requests.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Union

import structlog
from pydantic import BaseModel, Field

from inbox_rank.models import CategorizationResult, Item
from inbox_rank.triage.categorizer import Categorizer

logger = structlog.get_logger()

VipResolver = Callable[[Item], Union[bool, Awaitable[bool]]]


class BatchOptions(BaseModel):
    """Chunking and pacing for categorize_batch."""

    batch_size: int = Field(default=5, ge=1, description="Items categorized concurrently")
    delay_ms: int = Field(default=500, ge=0, description="Pause between chunks in milliseconds")


def chunked(items: Sequence[Item], size: int) -> list[Sequence[Item]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


async def resolve_vip(is_vip: VipResolver, item: Item) -> bool:
    """Call a sync or async VIP resolver; any failure counts as not VIP."""

    try:
        value = is_vip(item)
        if inspect.isawaitable(value):
            value = await value
    except Exception as exc:  # noqa: BLE001
        logger.warning("vip_resolution_failed", item_id=item.id, error=str(exc))
        return False
    return bool(value)


async def _categorize_one(
    categorizer: Categorizer,
    item: Item,
    is_vip: VipResolver,
    verbose: bool,
) -> CategorizationResult:
    vip = await resolve_vip(is_vip, item)
    return await categorizer.categorize_item(item, vip, verbose)


async def categorize_batch(
    items: Sequence[Item],
    is_vip: VipResolver,
    categorizer: Categorizer,
    *,
    batch_size: int = 5,
    delay_ms: int = 500,
    verbose: bool = False,
) -> list[CategorizationResult]:
    """Categorize items in paced, concurrent chunks.

    Args:
        items: Items to categorize.
        is_vip: VIP resolver, sync or async.
        categorizer: Categorizer used for every item.
        batch_size: Maximum concurrent categorizations.
        delay_ms: Pause between chunks.
        verbose: Log per-batch and per-item progress at info level.

    Returns:
        One result per item, in input order.

    Raises:
        pydantic.ValidationError: If batch_size < 1 or delay_ms < 0.
    """

    options = BatchOptions(batch_size=batch_size, delay_ms=delay_ms)
    chunks = chunked(items, options.batch_size)
    results: list[CategorizationResult] = []

    for index, chunk in enumerate(chunks, start=1):
        log_method = logger.info if verbose else logger.debug
        log_method("categorize_batch_started", batch=index, total_batches=len(chunks), size=len(chunk))

        # gather keeps argument order regardless of completion order.
        chunk_results = await asyncio.gather(
            *(_categorize_one(categorizer, item, is_vip, verbose) for item in chunk)
        )
        results.extend(chunk_results)

        if index < len(chunks) and options.delay_ms > 0:
            await asyncio.sleep(options.delay_ms / 1000)

    logger.info("categorize_batch_completed", items=len(items), results=len(results))
    return results
