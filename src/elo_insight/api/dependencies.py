"""
Dependency injection for API endpoints.

The orchestrator is built once in the application lifespan and stored on
``app.state``; routes receive it through ``OrchestratorDependency``.  Tests
replace it with ``app.dependency_overrides[get_orchestrator]``.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..services.aggregation import AggregationOrchestrator


def get_orchestrator(request: Request) -> AggregationOrchestrator:
    """Dependency that provides the running orchestrator."""
    return request.app.state.orchestrator


OrchestratorDependency = Annotated[AggregationOrchestrator, Depends(get_orchestrator)]
