"""Search API endpoints."""

from fastapi import APIRouter, Depends

from app.config import settings
from app.dependencies import get_catalog_service, get_search_params
from app.schemas import ApiResponse, PaginationMeta, ResultResponse, SearchItemResponse, SearchParams
from app.services.catalog_service import CatalogService

router = APIRouter()


@router.get("", response_model=ApiResponse[list[SearchItemResponse]])
async def search(
    params: SearchParams = Depends(get_search_params),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Search the live catalog.

    Query parameters:
    - query: search terms, "double quoted" phrases kept whole (required)
    - page: 0-based page number
    - min_price / max_price: currency strings such as "$1,234.56"
    - sort: relevant, price-asc or price-desc
    - category: firearm, ammunition, other or all
    - retailers: JSON array of retailer identifiers
    """
    results = await catalog.search(params)
    limit = settings.SEARCH_PAGE_SIZE
    total = results.total_count

    return ApiResponse(
        status="success",
        data=[
            SearchItemResponse(
                result=ResultResponse.from_record(hit.result),
                final_price=hit.final_price,
                score=hit.score,
            )
            for hit in results.items
        ],
        meta=PaginationMeta(
            page=params.page_index,
            limit=limit,
            total=total,
            total_pages=(total + limit - 1) // limit if total > 0 else 0,
        ),
    )
