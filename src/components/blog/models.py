"""
Blog component - Data models.

Posts themselves are the BlogPost entity; these are the shell-layer
inputs and outputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.components.persistence.models import ServedFrom
from src.core.entities import BlogPost

# --- Validation Errors ---


@dataclass(frozen=True)
class PostValidationError:
    """Blog post validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class CreatePostInput:
    """Input for creating a post; an empty slug is derived from the title."""

    post: BlogPost


@dataclass(frozen=True)
class UpdatePostInput:
    """Input for a partial post update."""

    post_id: str
    changes: dict[str, Any]


@dataclass(frozen=True)
class DeletePostInput:
    """Input for deleting a post."""

    post_id: str


@dataclass(frozen=True)
class GetPostInput:
    """Input for fetching one post by id or by slug."""

    post_id: str | None = None
    slug: str | None = None


@dataclass(frozen=True)
class ListPostsInput:
    """Input for listing posts."""

    published_only: bool = False
    scheduled_only: bool = False
    query: str | None = None


# --- Output Models ---


@dataclass
class PostOperationOutput:
    """Output from a single-post operation."""

    post: BlogPost | None
    served_from: ServedFrom | None = None
    errors: list[PostValidationError] = field(default_factory=list)
    success: bool = True


@dataclass
class PostListOutput:
    """Output from a list, search or publish operation."""

    posts: list[BlogPost]
    total: int
    served_from: ServedFrom = ServedFrom.PRIMARY
