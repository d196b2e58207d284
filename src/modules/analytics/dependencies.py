"""
Analytics Module - FastAPI Dependencies
"""
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings
from src.core.database import get_db
from src.core.models import utc_now
from src.modules.analytics.resolver import CorrelationResolver
from src.modules.analytics.service import AnalyticsService, Clock


def get_clock() -> Clock:
    """Clock used for "now"; override in tests for a fixed instant."""
    return utc_now


def get_resolver(request: Request) -> CorrelationResolver:
    """Resolver built once by the application factory."""
    return request.app.state.resolver


async def get_analytics_service(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    resolver: Annotated[CorrelationResolver, Depends(get_resolver)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AnalyticsService:
    """Get AnalyticsService with configured window, resolver and clock."""
    settings: Settings = request.app.state.settings
    return AnalyticsService(
        db,
        resolver=resolver,
        clock=clock,
        window=timedelta(hours=settings.analytics_window_hours),
    )


# Type aliases
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
