"""Crawl result lookup endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_catalog_service
from app.schemas import ApiResponse, ResultResponse
from app.services.catalog_service import CatalogService

router = APIRouter()


@router.get("/{result_id}", response_model=ApiResponse[ResultResponse])
async def get_result(
    result_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Fetch one listing from the live view."""
    record = await catalog.find_by_id(result_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Result not found: {result_id}")

    return ApiResponse(status="success", data=ResultResponse.from_record(record))
