"""
Analytics Module - Windowed efficiency analytics.
"""
from src.modules.analytics.resolver import (
    CorrelationResolver,
    IdentityCorrelationResolver,
    MappingCorrelationResolver,
    build_resolver,
)
from src.modules.analytics.router import router
from src.modules.analytics.service import AnalyticsService, efficiency_ratio

__all__ = [
    "AnalyticsService",
    "CorrelationResolver",
    "IdentityCorrelationResolver",
    "MappingCorrelationResolver",
    "build_resolver",
    "efficiency_ratio",
    "router",
]
