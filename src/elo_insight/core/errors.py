"""
Error taxonomy for the stats engine.

Only the dispatcher, the backend client and the orchestrator raise these.
Normalizers never raise; an unusable payload becomes a StatsUnavailable
sentinel instead (see core.models).
"""

from __future__ import annotations


class StatsError(Exception):
    """Base exception for stats engine errors."""

    code: str = "STATS_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingAccountError(StatsError):
    """The account link a game/platform needs is missing from the profile."""

    code = "ACCOUNT_NOT_LINKED"

    def __init__(self, game: str, platform: str, message: str | None = None):
        super().__init__(
            message or f"Link your {platform} account to track {game} stats."
        )
        self.game = game
        self.platform = platform

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MissingAccountError):
            return NotImplemented
        return (self.game, self.platform) == (other.game, other.platform)

    def __hash__(self) -> int:
        return hash((self.game, self.platform))


class UpstreamError(StatsError):
    """Upstream provider rejected the request (not worth retrying)."""

    code = "UPSTREAM_ERROR"

    def __init__(self, game: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.game = game
        self.status_code = status_code


class UpstreamTransientError(UpstreamError):
    """Network failure, 5xx or exhausted rate limit; retried on the next refresh."""

    code = "UPSTREAM_UNAVAILABLE"


class PersistenceError(StatsError):
    """Backend create/delete/list call failed."""

    code = "BACKEND_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
