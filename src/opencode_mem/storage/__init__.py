"""Storage contracts for summaries."""

from opencode_mem.storage.summaries import InMemorySummaryStore, StoredSummary, SummaryStore

__all__ = ["InMemorySummaryStore", "StoredSummary", "SummaryStore"]
