"""FastAPI dependency injection providers."""

from typing import AsyncGenerator

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.schemas.search import SearchParams
from app.services.catalog_service import CatalogService
from app.services.price_history_service import PriceHistoryService


def get_engine(request: Request) -> AsyncEngine:
    """Engine built by the application lifespan."""
    return request.app.state.engine


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    The session is automatically committed on success or rolled back on error.
    Always closed after the request completes.
    Sessions come from the factory the lifespan stores on app.state.
    """
    async with request.app.state.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


async def get_price_history_service(db: AsyncSession = Depends(get_db)) -> PriceHistoryService:
    return PriceHistoryService(db)


async def get_search_params(request: Request) -> SearchParams:
    """Validate the raw query string into SearchParams.

    Validated as a whole so unknown parameters are rejected too.
    """
    try:
        return SearchParams.model_validate(dict(request.query_params))
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False)) from e
