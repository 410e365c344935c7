"""
Remote collaborators of the stats engine.

- BackendClient: saved stat selections and the linked-account profile
- UpstreamFetchDispatcher: raw per-game stats from the stats proxy

Usage:
    from elo_insight.providers import BackendClient, UpstreamFetchDispatcher

    async with BackendClient() as backend, UpstreamFetchDispatcher() as upstream:
        profile = await backend.get_profile()
        raw = await upstream.fetch(selection, profile)
"""

from .backend import BackendClient
from .dispatcher import PARAM_RESOLVERS, UpstreamFetchDispatcher

__all__ = [
    "BackendClient",
    "PARAM_RESOLVERS",
    "UpstreamFetchDispatcher",
]
