"""
Ingestion Module - FastAPI Dependencies
"""
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.ingestion.service import IngestionService


async def get_ingestion_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IngestionService:
    """Get IngestionService bound to the request session."""
    return IngestionService(db)


# Type aliases
IngestionServiceDep = Annotated[IngestionService, Depends(get_ingestion_service)]
