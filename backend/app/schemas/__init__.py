"""Pydantic schemas for the catalog API.

All request/response models are defined here for easy import.
"""

from app.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, PaginationMeta
from app.schemas.result import PriceSchema, ResultResponse
from app.schemas.search import SearchItemResponse, SearchParams
from app.schemas.history import DailyPricePoint, PriceHistoryPoint, PriceHistoryResponse
from app.schemas.health import HealthCheckResponse

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Result
    "PriceSchema",
    "ResultResponse",
    # Search
    "SearchParams",
    "SearchItemResponse",
    # History
    "PriceHistoryPoint",
    "DailyPricePoint",
    "PriceHistoryResponse",
    # Health
    "HealthCheckResponse",
]
