"""Business logic services for the channel statistics service."""

from channel_stats.services.aggregation import AggregationResult, aggregate_channel
from channel_stats.services.identity import extract_handle

__all__ = [
    "AggregationResult",
    "aggregate_channel",
    "extract_handle",
]
