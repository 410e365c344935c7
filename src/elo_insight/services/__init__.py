"""
Services for Elo Insight.

Usage:
    from elo_insight.services import AggregationOrchestrator

    orchestrator = AggregationOrchestrator(backend, dispatcher)
    await orchestrator.start()
"""

from .aggregation import AggregationOrchestrator

__all__ = [
    "AggregationOrchestrator",
]
