"""
Blog component - Blog post management with local fallback.

Handles post CRUD, search and scheduled publishing.

Shell Layer - handles I/O and error conversion.
"""

from __future__ import annotations

from ._impl import BlogPostService
from .models import (
    CreatePostInput,
    DeletePostInput,
    GetPostInput,
    ListPostsInput,
    PostListOutput,
    PostOperationOutput,
    UpdatePostInput,
)


async def run_create(inp: CreatePostInput, service: BlogPostService) -> PostOperationOutput:
    """Create a post."""
    result, errors = await service.create(inp.post)
    if result is None:
        return PostOperationOutput(post=None, errors=errors, success=False)
    return PostOperationOutput(post=result.value, served_from=result.served_from)


async def run_update(inp: UpdatePostInput, service: BlogPostService) -> PostOperationOutput:
    """Apply a partial update to a post."""
    result, errors = await service.update(inp.post_id, inp.changes)
    if result is None:
        return PostOperationOutput(post=None, errors=errors, success=False)
    return PostOperationOutput(post=result.value, served_from=result.served_from)


async def run_delete(inp: DeletePostInput, service: BlogPostService) -> PostOperationOutput:
    """Delete a post."""
    result, errors = await service.delete(inp.post_id)
    if result is None:
        return PostOperationOutput(post=None, errors=errors, success=False)
    return PostOperationOutput(post=None, served_from=result.served_from)


async def run_get(inp: GetPostInput, service: BlogPostService) -> PostOperationOutput:
    """Get a post by id or slug."""
    if inp.post_id is not None:
        result = await service.get_by_id(inp.post_id)
    elif inp.slug is not None:
        result = await service.get_by_slug(inp.slug)
    else:
        raise ValueError("GetPostInput needs post_id or slug")

    return PostOperationOutput(
        post=result.value,
        served_from=result.served_from,
        success=result.value is not None,
    )


async def run_list(inp: ListPostsInput, service: BlogPostService) -> PostListOutput:
    """List, filter or search posts."""
    if inp.query is not None:
        result = await service.search(inp.query)
    elif inp.scheduled_only:
        result = await service.list_scheduled()
    elif inp.published_only:
        result = await service.list_published()
    else:
        result = await service.list_posts()

    return PostListOutput(posts=result.value, total=len(result.value), served_from=result.served_from)


async def run_publish_due(service: BlogPostService) -> PostListOutput:
    """Publish scheduled posts whose time has come."""
    result = await service.publish_due()
    return PostListOutput(posts=result.value, total=len(result.value), served_from=result.served_from)
