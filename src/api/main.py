import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.deps import get_settings, set_context
from src.app_shell.config import ConfigurationError, validate_backend_rules
from src.app_shell.context import ServiceContext
from src.rules.loader import load_rules

logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_backend_rules(rules)
        logger.info("Rules loaded from %s", settings.rules_path)
    except (FileNotFoundError, ValueError, ConfigurationError) as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    ctx = ServiceContext.create(rules, cache_path=settings.cache_path)
    set_context(ctx)

    yield

    await ctx.aclose()
    set_context(None)


app = FastAPI(
    title="Affiliate Console API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import admin_analytics, admin_blog  # noqa: E402

app.include_router(admin_analytics.router, prefix="/api/admin/analytics", tags=["Admin Analytics"])
app.include_router(admin_blog.router, prefix="/api/admin/blog", tags=["Admin Blog"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Served-From"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
