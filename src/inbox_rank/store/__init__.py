"""Local item store.

This package keeps normalized items, their triage results and the VIP contact
list in a single SQLite database.
"""

from .repository import Contact, StoredTriage, TriageRepository

__all__ = ["Contact", "StoredTriage", "TriageRepository"]
