"""InboxRank - priority triage for a unified inbox.

This package ranks inbound work items (emails, chat messages, helpdesk
tickets) by combining a local LLM categorization step with deterministic
scoring and quick-win heuristics.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from inbox_rank.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
