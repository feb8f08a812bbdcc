"""
Blog component - Blog post management with local fallback.
"""

from ._impl import (
    BLOG_POSTS,
    BlogPostService,
    create_blog_service,
    matches_search,
    slugify,
    validate_post_data,
)
from .component import (
    run_create,
    run_delete,
    run_get,
    run_list,
    run_publish_due,
    run_update,
)
from .models import (
    CreatePostInput,
    DeletePostInput,
    GetPostInput,
    ListPostsInput,
    PostListOutput,
    PostOperationOutput,
    PostValidationError,
    UpdatePostInput,
)
from .ports import CollectionStorePort, TimePort

__all__ = [
    # Entry points
    "run_create",
    "run_update",
    "run_delete",
    "run_get",
    "run_list",
    "run_publish_due",
    # Input models
    "CreatePostInput",
    "UpdatePostInput",
    "DeletePostInput",
    "GetPostInput",
    "ListPostsInput",
    # Output models
    "PostOperationOutput",
    "PostListOutput",
    "PostValidationError",
    # Ports
    "CollectionStorePort",
    "TimePort",
    # Service
    "BLOG_POSTS",
    "BlogPostService",
    "create_blog_service",
    "matches_search",
    "slugify",
    "validate_post_data",
]
