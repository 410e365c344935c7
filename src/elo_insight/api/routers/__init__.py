"""API routers module."""

from . import stats

__all__ = ["stats"]
