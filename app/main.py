# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the StockMeta API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.auth import routes as auth_routes
from app.config import settings
from app.exceptions import (
    StockMetaException,
    stockmeta_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.realtime import routes as realtime_routes
from app.routers import billing, functions, generations, health, presence, tools

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Headers the dashboard's platform client sends on every call
ALLOWED_HEADERS = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
    "x-cron-secret",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup configuration and shutdown.
    """
    logger.info(f"Starting StockMeta API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list if settings.is_production else ['*']}")
    if not settings.AI_GATEWAY_API_KEY:
        logger.warning("AI_GATEWAY_API_KEY is not set; AI tools will fail")
    if not settings.SENDGRID_API_KEY:
        logger.warning("SENDGRID_API_KEY is not set; contact emails will fail")

    yield

    logger.info("Shutting down StockMeta API")


app = FastAPI(
    title="StockMeta API",
    description="""
## Stock Content Contributor API

Backend for the StockMeta dashboard: AI metadata for stock marketplaces,
credits and credit packs, and the maintenance jobs behind them.

### Tools

| Endpoint | Purpose | Credits |
|----------|---------|---------|
| `POST /api/v1/tools/generate-metadata` | Titles, descriptions, keywords per marketplace | 1 per marketplace |
| `POST /api/v1/tools/image-to-prompt` | Prompt that recreates an image | 1 |
| `POST /api/v1/tools/review-file` | Rejection risk review | 1 |
| `POST /api/v1/tools/preprocess` | SVG/video to image | - |

### Realtime

`ws://host/ws/presence?token=<jwt>` tracks who is online.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Verify JWT tokens"},
        {"name": "Tools", "description": "Media preprocessing and AI tools"},
        {"name": "Billing", "description": "Credit status and credit packs"},
        {"name": "Generations", "description": "Metadata generation history"},
        {"name": "Presence", "description": "Live users"},
        {"name": "Functions", "description": "Scheduled jobs, contact form, purchases"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=settings.is_production,
    allow_methods=["*"],
    allow_headers=ALLOWED_HEADERS,
    expose_headers=["X-Was-Converted", "X-Original-Type"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

app.add_exception_handler(StockMetaException, stockmeta_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth_routes.router, prefix="/api/v1/auth", tags=["Auth"])

app.include_router(health.router, prefix="/api/v1", tags=["Health"])

app.include_router(tools.router, prefix="/api/v1/tools", tags=["Tools"])

app.include_router(billing.router, prefix="/api/v1", tags=["Billing"])

app.include_router(generations.router, prefix="/api/v1/generations", tags=["Generations"])

app.include_router(presence.router, prefix="/api/v1/presence", tags=["Presence"])

app.include_router(functions.router, prefix="/functions/v1", tags=["Functions"])

# WebSocket endpoints (presence channel)
app.include_router(realtime_routes.router, tags=["Presence"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "StockMeta API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
