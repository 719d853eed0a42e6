"""FastAPI dependency injection container.

Long-lived resources (database pool, Redis client) are created once in the
application lifespan and stored on ``app.state.resources``. The functions
here hand them to routes through FastAPI's Depends() pattern so that tests
can replace them with ``app.dependency_overrides``.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from redis.asyncio import Redis

from sumlog.config import Settings
from sumlog.core.database import Database
from sumlog.services.calculator import CalculationService


@dataclass
class AppResources:
    """Everything the lifespan opened, in one place."""

    settings: Settings
    database: Database
    redis: Redis
    service: CalculationService


# ========================================
# Resource Dependencies
# ========================================
def get_resources(request: Request) -> AppResources:
    """Get the resources opened by the lifespan.

    Raises:
        RuntimeError: If the application was not started through its lifespan
    """
    resources = getattr(request.app.state, "resources", None)
    if resources is None:
        raise RuntimeError("Application resources not initialized.")
    return resources


# ========================================
# Service Dependencies
# ========================================
def get_calculation_service(
    resources: Annotated[AppResources, Depends(get_resources)],
) -> CalculationService:
    """Get the calculation service.

    Usage:
        ```python
        @router.post("/calculate")
        async def calculate(service: CalculationServiceDep):
            ...
        ```
    """
    return resources.service


CalculationServiceDep = Annotated[CalculationService, Depends(get_calculation_service)]
