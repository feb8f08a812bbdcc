"""Admin routes for managing blog posts.

Every response carries an X-Served-From header ("primary" or "fallback")
so the editor can warn that a change is only stored locally.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field

from src.api.deps import get_blog_service
from src.components.blog import (
    BlogPostService,
    CreatePostInput,
    DeletePostInput,
    GetPostInput,
    ListPostsInput,
    PostOperationOutput,
    UpdatePostInput,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_publish_due,
    run_update,
)
from src.components.persistence import ServedFrom
from src.core.entities import BlogPost

router = APIRouter()

SERVED_FROM_HEADER = "X-Served-From"


# --- Request/Response Models ---


class PostCreateRequest(BaseModel):
    title: str
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    category: str = "General"
    image_url: str = ""
    published: bool = False
    featured: bool = False
    read_time: str | None = None
    tags: list[str] = Field(default_factory=list)
    scheduled_at: datetime | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None


class PostUpdateRequest(BaseModel):
    title: str | None = None
    slug: str | None = None
    excerpt: str | None = None
    content: str | None = None
    category: str | None = None
    image_url: str | None = None
    published: bool | None = None
    featured: bool | None = None
    read_time: str | None = None
    tags: list[str] | None = None
    scheduled_at: datetime | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None


class PostListResponse(BaseModel):
    items: list[BlogPost]
    total: int


# --- Helper Functions ---


def _set_served_from(response: Response, served_from: ServedFrom | None) -> None:
    if served_from is not None:
        response.headers[SERVED_FROM_HEADER] = served_from.value


def _raise_for_errors(result: PostOperationOutput) -> None:
    codes = {e.code for e in result.errors}
    if "backend_unavailable" in codes:
        status_code = 503
    elif "post_not_found" in codes:
        status_code = 404
    else:
        status_code = 400
    raise HTTPException(
        status_code=status_code,
        detail=[{"code": e.code, "message": e.message, "field": e.field} for e in result.errors],
    )


# --- Routes ---


@router.get("/posts", response_model=PostListResponse)
async def list_posts(
    response: Response,
    published: bool = Query(False, description="Only published posts"),
    scheduled: bool = Query(False, description="Only scheduled, unpublished posts"),
    q: str | None = Query(None, description="Search published posts"),
    service: BlogPostService = Depends(get_blog_service),
) -> PostListResponse:
    """List, filter or search posts."""
    result = await run_list(
        ListPostsInput(published_only=published, scheduled_only=scheduled, query=q),
        service,
    )
    _set_served_from(response, result.served_from)
    return PostListResponse(items=result.posts, total=result.total)


@router.get("/posts/by-slug/{slug}", response_model=BlogPost)
async def get_post_by_slug(
    slug: str,
    response: Response,
    service: BlogPostService = Depends(get_blog_service),
) -> BlogPost:
    """Get a post by slug."""
    result = await run_get(GetPostInput(slug=slug), service)
    if result.post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    _set_served_from(response, result.served_from)
    return result.post


@router.get("/posts/{post_id}", response_model=BlogPost)
async def get_post(
    post_id: str,
    response: Response,
    service: BlogPostService = Depends(get_blog_service),
) -> BlogPost:
    """Get a post by ID."""
    result = await run_get(GetPostInput(post_id=post_id), service)
    if result.post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    _set_served_from(response, result.served_from)
    return result.post


@router.post("/posts", response_model=BlogPost, status_code=201)
async def create_post(
    data: PostCreateRequest,
    response: Response,
    service: BlogPostService = Depends(get_blog_service),
) -> BlogPost:
    """Create a new post."""
    post = BlogPost(**data.model_dump())
    result = await run_create(CreatePostInput(post=post), service)

    if not result.success or result.post is None:
        _raise_for_errors(result)

    assert result.post is not None
    _set_served_from(response, result.served_from)
    return result.post


@router.patch("/posts/{post_id}", response_model=BlogPost)
async def update_post(
    post_id: str,
    data: PostUpdateRequest,
    response: Response,
    service: BlogPostService = Depends(get_blog_service),
) -> BlogPost:
    """Apply a partial update; only supplied fields change."""
    changes: dict[str, Any] = data.model_dump(exclude_unset=True)
    result = await run_update(UpdatePostInput(post_id=post_id, changes=changes), service)

    if not result.success or result.post is None:
        _raise_for_errors(result)

    assert result.post is not None
    _set_served_from(response, result.served_from)
    return result.post


@router.delete("/posts/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    service: BlogPostService = Depends(get_blog_service),
) -> Response:
    """Delete a post."""
    result = await run_delete(DeletePostInput(post_id=post_id), service)

    if not result.success:
        _raise_for_errors(result)

    response = Response(status_code=204)
    _set_served_from(response, result.served_from)
    return response


@router.post("/posts/publish-due", response_model=PostListResponse)
async def publish_due(
    response: Response,
    service: BlogPostService = Depends(get_blog_service),
) -> PostListResponse:
    """Publish scheduled posts whose time has come."""
    result = await run_publish_due(service)
    _set_served_from(response, result.served_from)
    return PostListResponse(items=result.posts, total=result.total)
