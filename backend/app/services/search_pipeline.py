"""Multi-stage search query over the live view.

match -> dedupe -> sort -> paginate+count, compiled into a single
SELECT so the page slice and the post-dedupe total come back together.
The SQL sticks to LIKE, replace() and window functions so the same
pipeline runs on PostgreSQL and SQLite.
"""

import re
import time
from dataclasses import dataclass
from functools import reduce
from typing import List, Optional

import structlog
from sqlalchemy import Float, Integer, Select, String, and_, case, cast, func, literal, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.config import settings
from app.core.enums import Category, SortOrder
from app.models.crawl_result import LiveResult
from app.schemas.search import SearchParams

logger = structlog.get_logger(__name__)

_TERM_PATTERN = re.compile(r'"([^"]*)"|(\S+)')


@dataclass
class SearchHit:
    result: LiveResult
    score: float
    final_price: float


@dataclass
class SearchResults:
    items: List[SearchHit]
    total_count: int


def tokenize_query(query: str) -> List[str]:
    """Split a query into lowercase terms.

    Double-quoted phrases stay whole, everything else splits on
    whitespace: 'federal "9mm luger"' -> ['federal', '9mm luger'].
    """
    terms: List[str] = []
    for phrase, word in _TERM_PATTERN.findall(query):
        term = (phrase or word).strip().lower()
        if term and term not in terms:
            terms.append(term)
    return terms


def effective_price_expr() -> ColumnElement:
    return func.coalesce(LiveResult.sale_price, LiveResult.regular_price)


def final_price_expr() -> ColumnElement:
    """Per-round price for ammunition with a known round count, else the effective price."""
    effective = cast(effective_price_expr(), Float)
    return case(
        (
            and_(
                LiveResult.category == Category.AMMUNITION.value,
                LiveResult.round_count > 0,
            ),
            effective / LiveResult.round_count,
        ),
        else_=effective,
    )


class MatchStage:
    """Filters: every term, the live window, price bounds, category and retailers."""

    def __init__(self, params: SearchParams, cutoff: int):
        self.params = params
        self.cutoff = cutoff
        self.terms = tokenize_query(params.query)

    def conditions(self) -> List[ColumnElement]:
        name = func.lower(LiveResult.name, type_=String)
        conditions = [name.contains(term, autoescape=True) for term in self.terms]
        conditions.append(LiveResult.query_time >= self.cutoff)

        effective = effective_price_expr()
        if self.params.min_price is not None:
            conditions.append(effective >= self.params.min_price)
        if self.params.max_price is not None:
            conditions.append(effective <= self.params.max_price)

        if self.params.category == Category.ALL:
            categories = Category.concrete()
        else:
            categories = [self.params.category]
        conditions.append(LiveResult.category.in_([c.value for c in categories]))

        if self.params.retailers:
            conditions.append(LiveResult.retailer.in_([r.value for r in self.params.retailers]))

        return conditions

    def score(self) -> ColumnElement:
        """Share of the name covered by the query terms, 0.0 to 1.0 per term."""
        if not self.terms:
            return literal(0.0, Float)

        name = func.lower(LiveResult.name, type_=String)
        length = func.length(name, type_=Integer)
        covered = [
            length - func.length(func.replace(name, literal(term), "", type_=String), type_=Integer)
            for term in self.terms
        ]
        total = reduce(lambda left, right: left + right, covered)
        return cast(total, Float) / cast(length, Float)


class DedupeStage:
    """One row per (name, url): the most recently crawled one."""

    def rank(self) -> ColumnElement:
        return func.row_number().over(
            partition_by=(LiveResult.name, LiveResult.url),
            order_by=(LiveResult.query_time.desc(), LiveResult.id),
        )


class SortStage:
    def __init__(self, sort: SortOrder):
        self.sort = sort

    def order_by(self, ranked) -> list:
        if self.sort == SortOrder.RELEVANT:
            return [ranked.c.score.desc(), LiveResult.name.asc(), LiveResult.id.asc()]

        columns = [ranked.c.final_price, ranked.c.effective_price, LiveResult.name]
        if self.sort == SortOrder.PRICE_DESC:
            return [column.desc() for column in columns] + [LiveResult.id.desc()]
        return [column.asc() for column in columns] + [LiveResult.id.asc()]


class PageStage:
    def __init__(self, page: int, page_size: int):
        self.page = page
        self.page_size = page_size

    def apply(self, stmt: Select) -> Select:
        return stmt.offset(self.page * self.page_size).limit(self.page_size)


class SearchPipeline:
    """Compile SearchParams into one query over live_results."""

    def __init__(
        self,
        params: SearchParams,
        now: Optional[int] = None,
        retention_seconds: Optional[int] = None,
        page_size: Optional[int] = None,
    ):
        now = now if now is not None else int(time.time())
        retention = retention_seconds if retention_seconds is not None else settings.retention_seconds

        self.params = params
        self.match = MatchStage(params, cutoff=now - retention)
        self.dedupe = DedupeStage()
        self.sort = SortStage(params.sort)
        self.paging = PageStage(params.page_index, page_size or settings.SEARCH_PAGE_SIZE)

    def _ranked(self):
        return (
            select(
                LiveResult.id.label("id"),
                self.match.score().label("score"),
                final_price_expr().label("final_price"),
                effective_price_expr().label("effective_price"),
                self.dedupe.rank().label("group_rank"),
            )
            .where(*self.match.conditions())
            .subquery("ranked")
        )

    def build(self) -> Select:
        ranked = self._ranked()
        stmt = (
            select(
                LiveResult,
                ranked.c.score,
                ranked.c.final_price,
                func.count().over().label("total_count"),
            )
            .join(ranked, ranked.c.id == LiveResult.id)
            .where(ranked.c.group_rank == 1)
            .order_by(*self.sort.order_by(ranked))
        )
        return self.paging.apply(stmt)

    def build_count(self) -> Select:
        ranked = self._ranked()
        return select(func.count()).select_from(ranked).where(ranked.c.group_rank == 1)

    async def execute(self, db: AsyncSession) -> SearchResults:
        rows = (await db.execute(self.build())).all()

        if rows:
            total_count = rows[0].total_count
        elif self.paging.page > 0:
            # Past the last page the window count has no row to ride on
            total_count = (await db.execute(self.build_count())).scalar_one()
        else:
            total_count = 0

        items = [
            SearchHit(result=row[0], score=float(row.score or 0.0), final_price=float(row.final_price))
            for row in rows
        ]

        logger.debug(
            "search_executed",
            query=self.params.query,
            terms=self.match.terms,
            page=self.paging.page,
            returned=len(items),
            total_count=total_count,
        )
        return SearchResults(items=items, total_count=total_count)
