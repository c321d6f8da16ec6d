"""Community posts, comments and likes."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.api.deps import CurrentUser, DbSession
from app.core.config import settings
from app.core.redis import CACHE_COMMUNITY_PREFIX, cache_get_json, cache_invalidate, cache_set_json
from app.models.community import Comment, Post, PostLike
from app.models.reading import Reading
from app.schemas.common import PaginatedResponse, PaginationMeta
from app.schemas.community import (
    CommentCreate,
    CommentResponse,
    LikeResponse,
    PostCreate,
    PostDetailResponse,
    PostResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_post(db: DbSession, post_id: UUID) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return post


@router.get("/posts", response_model=PaginatedResponse[PostResponse])
async def list_posts(
    db: DbSession,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[PostResponse]:
    """Posts, newest first (cached per page)."""
    cache_key = f"{CACHE_COMMUNITY_PREFIX}posts:{page}:{per_page}"
    cached = await cache_get_json(cache_key)
    if cached is not None:
        return PaginatedResponse[PostResponse].model_validate(cached)

    total = (await db.execute(select(func.count(Post.id)))).scalar() or 0
    result = await db.execute(
        select(Post)
        .options(selectinload(Post.author))
        .order_by(Post.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )

    response = PaginatedResponse[PostResponse](
        data=[PostResponse.model_validate(p) for p in result.scalars().all()],
        pagination=PaginationMeta.build(page, per_page, total),
    )
    await cache_set_json(cache_key, response.model_dump(mode="json"), settings.cache_ttl_community)
    return response


@router.get("/posts/{post_id}", response_model=PostDetailResponse)
async def get_post(post_id: UUID, db: DbSession) -> PostDetailResponse:
    result = await db.execute(
        select(Post)
        .options(
            selectinload(Post.author),
            selectinload(Post.comments).selectinload(Comment.author),
        )
        .where(Post.id == post_id)
    )
    post = result.scalar_one_or_none()
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return PostDetailResponse.model_validate(post)


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(payload: PostCreate, current_user: CurrentUser, db: DbSession) -> PostResponse:
    """Publish a post, optionally linked to one of the caller's readings."""
    if payload.reading_id is not None:
        reading = await db.get(Reading, payload.reading_id)
        if reading is None or reading.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Reading not found",
            )

    post = Post(
        author_id=current_user.id,
        title=payload.title,
        content=payload.content,
        reading_type=payload.reading_type,
        reading_id=payload.reading_id,
        like_count=0,
    )
    post.author = current_user
    db.add(post)
    await db.flush()
    await db.refresh(post, attribute_names=["created_at", "updated_at"])

    await cache_invalidate(CACHE_COMMUNITY_PREFIX)
    logger.info(f"User {current_user.id} created post {post.id}")
    return PostResponse.model_validate(post)


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: UUID,
    payload: CommentCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> CommentResponse:
    await _get_post(db, post_id)

    comment = Comment(post_id=post_id, author_id=current_user.id, content=payload.content)
    comment.author = current_user
    db.add(comment)
    await db.flush()
    await db.refresh(comment, attribute_names=["created_at"])

    await cache_invalidate(CACHE_COMMUNITY_PREFIX)
    return CommentResponse.model_validate(comment)


@router.post("/posts/{post_id}/like", response_model=LikeResponse)
async def toggle_like(post_id: UUID, current_user: CurrentUser, db: DbSession) -> LikeResponse:
    """Like a post, or remove the like if already given."""
    post = await _get_post(db, post_id)

    result = await db.execute(
        select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == current_user.id)
    )
    like = result.scalar_one_or_none()

    if like is None:
        db.add(PostLike(post_id=post_id, user_id=current_user.id))
        post.like_count = (post.like_count or 0) + 1
        liked = True
    else:
        await db.delete(like)
        post.like_count = max(0, (post.like_count or 0) - 1)
        liked = False

    await db.flush()
    await cache_invalidate(CACHE_COMMUNITY_PREFIX)
    return LikeResponse(liked=liked, like_count=post.like_count)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: UUID, current_user: CurrentUser, db: DbSession) -> None:
    """Delete a post (author or admin)."""
    post = await _get_post(db, post_id)
    if post.author_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author can delete this post",
        )

    await db.delete(post)
    await db.flush()
    await cache_invalidate(CACHE_COMMUNITY_PREFIX)
    logger.info(f"Post {post_id} deleted by {current_user.id}")
