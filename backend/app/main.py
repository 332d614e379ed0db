"""Firearm catalog backend -- FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_v1_router
from app.config import settings
from app.db.session import build_engine, build_session_factory
from app.db.utils import create_tables
from app.schemas import ErrorDetail, ErrorResponse
from app.scrapers.crawl_service import CrawlService
from app.scrapers.factory import AdapterFactory
from app.scrapers.register_adapters import register_all_adapters
from app.scrapers.scheduler import CrawlScheduler
from app.scrapers.transport import HttpTransport

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting catalog API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    session_factory = build_session_factory(engine)
    app.state.engine = engine
    app.state.session_factory = session_factory

    try:
        await create_tables(engine)
    except Exception as e:
        logger.error(f"Database init failed: {e}", exc_info=True)

    transport = HttpTransport()
    app.state.transport = transport
    app.state.scheduler = None

    # Crawl in the background (only in non-test environments)
    if settings.ENVIRONMENT != "test":
        await transport.start()

        adapter_factory = AdapterFactory(transport=transport)
        register_all_adapters(adapter_factory)

        crawl_service = CrawlService(session_factory, adapter_factory)
        scheduler = CrawlScheduler(crawl_service)
        scheduler.start()
        scheduler.add_cycle_job(interval_minutes=settings.CRAWL_INTERVAL_MINUTES)
        app.state.scheduler = scheduler
        logger.info(f"Crawl cycle scheduled every {settings.CRAWL_INTERVAL_MINUTES} minutes")
    else:
        logger.info("Scheduler disabled (test environment)")

    yield

    logger.info("Shutting down catalog API server...")

    if app.state.scheduler:
        logger.info("Stopping crawl scheduler...")
        app.state.scheduler.stop()

    await transport.close()
    await engine.dispose()


app = FastAPI(
    title="Firearm Catalog API",
    description="Search and price history over Canadian firearm retailer listings",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Wrap malformed query parameters in the standard error envelope."""
    first = exc.errors()[0] if exc.errors() else {}
    location = [str(part) for part in first.get("loc", ())]
    # FastAPI prefixes the parameter source, e.g. ("query", "id")
    if len(location) > 1 and location[0] in ("query", "path", "body"):
        location = location[1:]
    body = ErrorResponse(
        error=ErrorDetail(
            code="invalid_parameters",
            message=first.get("msg", "Invalid request parameters"),
            field=".".join(location) or None,
        )
    )
    return JSONResponse(status_code=422, content=body.model_dump())


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Firearm Catalog API",
        "version": "0.1.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
