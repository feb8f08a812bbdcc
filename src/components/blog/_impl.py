"""
BlogPostService - blog post persistence with local fallback.

Every read and write runs through a ResilientStore, so posts stay
editable while the remote backend is down. Each result carries the tier
that served it.

Key behaviors:
- Search covers title, excerpt, content, category and tags of published
  posts, case-insensitively
- An empty slug is derived from the title; slugs must be unique
- Publishing sets published_at once; re-publishing keeps the first value
- publish_due() publishes unpublished posts whose scheduled_at has passed
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from src.components.persistence import ResilientStore, ServedFrom, StoreResult
from src.core.entities import BlogPost
from src.core.errors import BackendUnavailableError, NotFoundError

from .models import PostValidationError
from .ports import Record, TimePort

logger = logging.getLogger(__name__)

BLOG_POSTS = "blog_posts"

MAX_TITLE_LENGTH = 200
MAX_SLUG_LENGTH = 100

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

# Fields managed by the service, never accepted from callers on update
_MANAGED_FIELDS = frozenset({"id", "created_at", "updated_at"})


# --- Validation Functions ---


def slugify(title: str) -> str:
    """Lowercase, hyphen-separated slug built from a title."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def validate_post_data(
    title: str | None = None,
    slug: str | None = None,
) -> list[PostValidationError]:
    """Validate post title and slug."""
    errors: list[PostValidationError] = []

    if title is not None:
        if not title.strip():
            errors.append(
                PostValidationError(
                    code="title_required",
                    message="Title is required",
                    field="title",
                )
            )
        elif len(title) > MAX_TITLE_LENGTH:
            errors.append(
                PostValidationError(
                    code="title_too_long",
                    message=f"Title must be {MAX_TITLE_LENGTH} characters or less",
                    field="title",
                )
            )

    if slug is not None:
        if not slug:
            errors.append(
                PostValidationError(
                    code="slug_required",
                    message="Slug is required",
                    field="slug",
                )
            )
        elif len(slug) > MAX_SLUG_LENGTH or not SLUG_PATTERN.match(slug):
            errors.append(
                PostValidationError(
                    code="slug_invalid",
                    message="Slug must be lowercase letters, digits and single hyphens",
                    field="slug",
                )
            )

    return errors


def matches_search(post: BlogPost, term: str) -> bool:
    """Case-insensitive substring match over the searchable fields."""
    query = term.lower().strip()
    if not query:
        return True
    haystacks = [post.title, post.excerpt, post.content, post.category or "", *post.tags]
    return any(query in text.lower() for text in haystacks)


def _to_posts(records: list[Record]) -> list[BlogPost]:
    posts = []
    for record in records:
        try:
            posts.append(BlogPost.model_validate(record))
        except ValidationError as e:
            logger.warning("Skipping malformed blog post %s: %s", record.get("id"), e)
    return posts


# --- Blog Post Service ---


class BlogPostService:
    """
    Blog post service.

    Manages posts on top of a ResilientStore.
    """

    def __init__(self, store: ResilientStore, time_port: TimePort) -> None:
        """Initialize service."""
        self._store = store
        self._time = time_port

    # --- Queries ---

    async def list_posts(self) -> StoreResult[list[BlogPost]]:
        """All posts, newest first."""
        result = await self._store.list(order_by="created_at", descending=True)
        return StoreResult(_to_posts(result.value), result.served_from)

    async def list_published(self) -> StoreResult[list[BlogPost]]:
        """Published posts, newest first."""
        result = await self._store.list(
            {"published": True},
            order_by="created_at",
            descending=True,
        )
        return StoreResult(_to_posts(result.value), result.served_from)

    async def list_scheduled(self) -> StoreResult[list[BlogPost]]:
        """Unpublished posts with a schedule, soonest first."""
        result = await self._store.list(
            {"published": False},
            order_by="scheduled_at",
        )
        posts = [p for p in _to_posts(result.value) if p.scheduled_at is not None]
        return StoreResult(posts, result.served_from)

    async def search(self, term: str) -> StoreResult[list[BlogPost]]:
        """Search published posts."""
        published = await self.list_published()
        posts = [p for p in published.value if matches_search(p, term)]
        return StoreResult(posts, published.served_from)

    async def get_by_id(self, post_id: str) -> StoreResult[BlogPost | None]:
        result = await self._store.get(post_id)
        post = BlogPost.model_validate(result.value) if result.value else None
        return StoreResult(post, result.served_from)

    async def get_by_slug(self, slug: str) -> StoreResult[BlogPost | None]:
        result = await self._store.find_one({"slug": slug})
        post = BlogPost.model_validate(result.value) if result.value else None
        return StoreResult(post, result.served_from)

    # --- Mutations ---

    async def create(
        self,
        post: BlogPost,
    ) -> tuple[StoreResult[BlogPost] | None, list[PostValidationError]]:
        """
        Create a new post.

        Returns:
            Tuple of (result, errors). Result is None if validation fails.
        """
        slug = post.slug.strip() or slugify(post.title)
        errors = validate_post_data(title=post.title, slug=slug)
        if errors:
            return None, errors

        if await self._slug_taken(slug):
            return None, [
                PostValidationError(
                    code="slug_duplicate",
                    message=f"Post with slug '{slug}' already exists",
                    field="slug",
                )
            ]

        now = self._time.now_utc()
        draft = post.model_copy(
            update={
                "title": post.title.strip(),
                "slug": slug,
                "created_at": post.created_at or now,
                "updated_at": now,
                "published_at": post.published_at or (now if post.published else None),
            }
        )
        record = draft.to_record()
        if record.get("id") is None:
            record.pop("id", None)

        result = await self._store.insert(record)
        return StoreResult(BlogPost.model_validate(result.value), result.served_from), []

    async def update(
        self,
        post_id: str,
        changes: Mapping[str, Any],
    ) -> tuple[StoreResult[BlogPost] | None, list[PostValidationError]]:
        """
        Apply a partial update.

        Returns:
            Tuple of (result, errors). Result is None if not found or invalid.
        """
        unknown = set(changes) - (set(BlogPost.model_fields) - _MANAGED_FIELDS)
        if unknown:
            return None, [
                PostValidationError(
                    code="field_unknown",
                    message=f"Unknown or read-only fields: {', '.join(sorted(unknown))}",
                )
            ]

        lookup = await self.get_by_id(post_id)
        existing = lookup.value
        if existing is None:
            # A fallback miss means the post may exist only on the primary
            if lookup.from_fallback:
                return None, [_unavailable("update")]
            return None, [_not_found(post_id)]

        errors = validate_post_data(title=changes.get("title"), slug=changes.get("slug"))
        if errors:
            return None, errors

        new_slug = changes.get("slug")
        if new_slug and new_slug != existing.slug and await self._slug_taken(new_slug):
            return None, [
                PostValidationError(
                    code="slug_duplicate",
                    message=f"Post with slug '{new_slug}' already exists",
                    field="slug",
                )
            ]

        now = self._time.now_utc()
        stamped: dict[str, Any] = {**changes, "updated_at": now}
        if changes.get("published") and existing.published_at is None:
            stamped.setdefault("published_at", now)

        try:
            merged = BlogPost.model_validate({**existing.model_dump(), **stamped})
        except ValidationError as e:
            return None, [
                PostValidationError(
                    code="invalid_value",
                    message=str(err["msg"]),
                    field=".".join(str(p) for p in err["loc"]),
                )
                for err in e.errors()
            ]

        record = merged.to_record()
        try:
            result = await self._store.update(post_id, {k: record[k] for k in stamped})
        except NotFoundError:
            return None, [_not_found(post_id)]
        except BackendUnavailableError as e:
            logger.warning("Could not save post %s: %s", post_id, e)
            return None, [_unavailable("update")]

        return StoreResult(BlogPost.model_validate(result.value), result.served_from), []

    async def delete(
        self,
        post_id: str,
    ) -> tuple[StoreResult[None] | None, list[PostValidationError]]:
        """Delete a post by id."""
        try:
            result = await self._store.remove(post_id)
        except NotFoundError:
            return None, [_not_found(post_id)]
        except BackendUnavailableError as e:
            logger.warning("Could not delete post %s: %s", post_id, e)
            return None, [_unavailable("delete")]
        return result, []

    async def publish_due(self) -> StoreResult[list[BlogPost]]:
        """
        Publish every scheduled post whose time has come.

        Served from fallback if any single update fell back.
        """
        now = self._time.now_utc()
        scheduled = await self.list_scheduled()
        served_from = scheduled.served_from
        published: list[BlogPost] = []

        for post in scheduled.value:
            if post.id is None or post.scheduled_at is None or post.scheduled_at > now:
                continue
            result, errors = await self.update(post.id, {"published": True})
            if result is None:
                logger.warning("Could not publish scheduled post %s: %s", post.id, errors)
                continue
            published.append(result.value)
            if result.served_from == ServedFrom.FALLBACK:
                served_from = ServedFrom.FALLBACK

        if published:
            logger.info("Published %d scheduled posts", len(published))
        return StoreResult(published, served_from)

    async def _slug_taken(self, slug: str) -> bool:
        return (await self._store.find_one({"slug": slug})).value is not None


def _not_found(post_id: str) -> PostValidationError:
    return PostValidationError(
        code="post_not_found",
        message=f"Post with ID {post_id} not found",
    )


def _unavailable(operation: str) -> PostValidationError:
    return PostValidationError(
        code="backend_unavailable",
        message=f"Failed to {operation} post: backend unavailable, please retry",
    )


# --- Factory ---


def create_blog_service(store: ResilientStore, time_port: TimePort) -> BlogPostService:
    """Create a BlogPostService."""
    return BlogPostService(store=store, time_port=time_port)
