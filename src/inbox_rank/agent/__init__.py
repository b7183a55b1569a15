"""Triage agent that ties the store, inference and pipeline together."""

from .triage_agent import TriageAgent, TriageRun, summarize_results

__all__ = ["TriageAgent", "TriageRun", "summarize_results"]
