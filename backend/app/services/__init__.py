"""Services module for business logic and data operations.

Services own data access for the catalog: persisting crawl batches,
maintaining the live view, searching it and reading price history.
"""

from app.services.catalog_service import CatalogService
from app.services.price_history_service import PriceHistoryService
from app.services.search_pipeline import SearchPipeline, SearchResults, tokenize_query

__all__ = [
    "CatalogService",
    "PriceHistoryService",
    "SearchPipeline",
    "SearchResults",
    "tokenize_query",
]
