"""Price history endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.exceptions import NotFoundError
from app.dependencies import get_price_history_service
from app.schemas import ApiResponse, DailyPricePoint, PriceHistoryPoint, PriceHistoryResponse
from app.services.price_history_service import PriceHistoryService

router = APIRouter()


@router.get("", response_model=ApiResponse[PriceHistoryResponse])
async def get_price_history(
    result_id: UUID = Query(..., alias="id", description="Id of a search result"),
    history_service: PriceHistoryService = Depends(get_price_history_service),
):
    """Daily price history of the listing behind a search result.

    One point per UTC day holding the lowest price seen that day, with
    empty days filled in, plus the all-time lowest and highest prices.
    """
    try:
        points = await history_service.get_history_by_id(result_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    if not points:
        raise HTTPException(status_code=404, detail=f"No price history for result: {result_id}")

    summary = history_service.summarize(points)
    daily = history_service.bucket_by_day(points)

    return ApiResponse(
        status="success",
        data=PriceHistoryResponse(
            history=[
                DailyPricePoint(normalized_timestamp=day.normalized_timestamp, price=day.price)
                for day in daily
            ],
            lowest_price=PriceHistoryPoint.model_validate(summary.lowest),
            highest_price=PriceHistoryPoint.model_validate(summary.highest),
        ),
    )
