import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.app_shell.context import ServiceContext
from src.components.analytics import AffiliateAnalyticsService
from src.components.blog import BlogPostService
from src.rules.loader import load_rules, resolve_rules_path
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = resolve_rules_path()
        data_dir = os.environ.get("AFFILIATE_DATA_DIR")
        self.cache_path = Path(data_dir) / "cache" if data_dir else None


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Context ---
_context_instance: ServiceContext | None = None


def get_context(rules: Rules = Depends(get_rules)) -> ServiceContext:
    """Get the process-wide service context, building it on first use."""
    global _context_instance
    if _context_instance is None:
        _context_instance = ServiceContext.create(rules, cache_path=get_settings().cache_path)
    return _context_instance


def set_context(ctx: ServiceContext | None) -> None:
    """Install (or drop) the shared context; used by the app lifespan."""
    global _context_instance
    _context_instance = ctx


# --- Component Services ---
def get_analytics_service(
    ctx: ServiceContext = Depends(get_context),
) -> AffiliateAnalyticsService:
    """Get analytics component service."""
    return ctx.analytics_service


def get_blog_service(
    ctx: ServiceContext = Depends(get_context),
) -> BlogPostService:
    """Get blog component service."""
    return ctx.blog_service
