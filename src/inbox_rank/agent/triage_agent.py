"""Inbox triage agent implementation.

This module provides the agent that runs one triage pass: read untriaged items
from the store, categorize them in batches, and write the results back.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from inbox_rank.config import Settings
from inbox_rank.inference import InferenceClient
from inbox_rank.models import CategorizationResult, Item, ItemSource, TriageSummary
from inbox_rank.ollama.client import OllamaClient
from inbox_rank.store import TriageRepository
from inbox_rank.triage.batch import categorize_batch
from inbox_rank.triage.categorizer import Categorizer
from inbox_rank.triage.scoring import rank_results

logger = structlog.get_logger()


def summarize_results(results: Iterable[CategorizationResult]) -> TriageSummary:
    """Count results by priority and category."""

    summary = TriageSummary()
    for result in results:
        summary.total += 1
        summary.by_priority[result.priority] += 1
        summary.by_category[result.category] += 1
        if result.quick_win:
            summary.quick_wins += 1
    return summary


@dataclass
class TriageRun:
    """Outcome of one triage pass."""

    results: list[CategorizationResult] = field(default_factory=list)
    items: dict[str, Item] = field(default_factory=dict)
    saved: bool = False

    @property
    def summary(self) -> TriageSummary:
        return summarize_results(self.results)

    def quick_wins(self) -> list[CategorizationResult]:
        return [r for r in self.results if r.quick_win]


class TriageAgent:
    """Main triage agent.

    This agent coordinates item queries, VIP lookups, batch
    categorization and triage write-back.
    """

    def __init__(
        self,
        repository: TriageRepository | None = None,
        inference_client: InferenceClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the triage agent.

        Args:
            repository: Item store. If None, opens the store from settings.
            inference_client: Inference collaborator. If None, creates an OllamaClient.
            settings: Application settings. If None, uses default settings.
        """
        from inbox_rank.config import get_settings

        self.settings = settings or get_settings()
        self.repository = repository or TriageRepository(self.settings.store_db_path)
        self.inference_client = inference_client or OllamaClient(self.settings)
        self.categorizer = Categorizer(self.inference_client, self.settings)
        logger.info("triage_agent_initialized")

    async def triage_items(self, items: list[Item], verbose: bool = False) -> list[CategorizationResult]:
        """Categorize the given items, ranked P0 first."""

        results = await categorize_batch(
            items,
            self._is_vip_sender,
            self.categorizer,
            batch_size=self.settings.batch_size,
            delay_ms=self.settings.batch_delay_ms,
            verbose=verbose,
        )
        return rank_results(results)

    async def _is_vip_sender(self, item: Item) -> bool:
        return await asyncio.to_thread(self.repository.is_vip_sender, item)

    async def run(
        self,
        source: ItemSource | str | None = None,
        limit: int | None = None,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> TriageRun:
        """Triage untriaged items from the store.

        Args:
            source: Only triage items from this source.
            limit: Maximum number of items. Defaults to settings.default_limit.
            dry_run: Categorize without writing results back.
            verbose: Log per-item progress at info level.

        Returns:
            TriageRun with ranked results.
        """
        limit = limit or self.settings.default_limit
        items = self.repository.query_items(source=source, triaged=False, limit=limit)
        logger.info("triage_run_started", items=len(items), source=source, limit=limit, dry_run=dry_run)

        run = TriageRun(items={item.id: item for item in items})
        if not items:
            return run

        run.results = await self.triage_items(items, verbose=verbose)

        if not dry_run:
            for result in run.results:
                self.repository.write_triage(result)
            run.saved = True

        summary = run.summary
        logger.info(
            "triage_run_completed",
            total=summary.total,
            quick_wins=summary.quick_wins,
            saved=run.saved,
            **{p.value: n for p, n in summary.by_priority.items()},
        )
        return run
