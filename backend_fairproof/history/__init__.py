"""
History: resolved-rounds client, row enrichment and the paginated feed.
"""

from backend_fairproof.history.client import ResolvedRoundsClient, RoundPage
from backend_fairproof.history.enrich import (
    DisplayRow,
    EnrichedRow,
    enrich_item,
    enrich_items,
    format_time,
    result_text,
    timestamp_ms,
)
from backend_fairproof.history.feed import ALL_GAMES, HistoryFeed, merge_sorted, per_game_limit

__all__ = [
    "ALL_GAMES",
    "DisplayRow",
    "EnrichedRow",
    "HistoryFeed",
    "ResolvedRoundsClient",
    "RoundPage",
    "enrich_item",
    "enrich_items",
    "format_time",
    "merge_sorted",
    "per_game_limit",
    "result_text",
    "timestamp_ms",
]
