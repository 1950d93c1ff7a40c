"""Tuition post CRUD, contact access and tutor applications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select

from tuitionhub.db.models import Application, Profile, TuitionPost, Unlock
from tuitionhub.payments.service import get_access_state, has_paid_unlock
from tuitionhub.payments.state import AccessState

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MAX_PAGE_SIZE = 100


class PostNotFoundError(LookupError):
    """Raised when a post id does not exist."""


class NotPostOwnerError(PermissionError):
    """Raised when someone other than the posting student edits a post."""


class StudentRoleRequiredError(PermissionError):
    """Raised when a non-student tries to post a requirement."""


class UnlockRequiredError(PermissionError):
    """Raised when a tutor applies without a paid unlock for the post."""


@dataclass
class PostAccess:
    state: AccessState
    contact: Profile | None


@dataclass
class PostFilters:
    city: str | None = None
    course: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    tuition_type: str | None = None


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


async def create_post(db: AsyncSession, profile: Profile, fields: dict[str, Any]) -> TuitionPost:
    """
    Create a post owned by the caller.

    Raises:
        StudentRoleRequiredError: If the caller's role is not ``student``.
    """
    if profile.role != "student":
        msg = "Only students can post tuition requirements"
        raise StudentRoleRequiredError(msg)

    now = datetime.now(timezone.utc)
    post = TuitionPost(
        student_id=profile.user_id,
        posted_on=now,
        created_at=now,
        lat=profile.lat,
        lon=profile.lon,
        **fields,
    )
    if not post.locality:
        post.locality = profile.locality
    db.add(post)
    await db.flush()
    logger.info("post_created", post_id=post.id, student_id=profile.user_id, city=post.city)
    return post


async def list_posts(
    db: AsyncSession,
    filters: PostFilters,
    *,
    limit: int = 20,
    offset: int = 0,
) -> list[TuitionPost]:
    """Browse posts newest first, with optional case-insensitive text filters."""
    query = select(TuitionPost)
    if filters.city:
        query = query.where(TuitionPost.city.icontains(filters.city, autoescape=True))
    if filters.course:
        query = query.where(TuitionPost.course.icontains(filters.course, autoescape=True))
    if filters.min_price is not None:
        query = query.where(TuitionPost.asked_price >= filters.min_price)
    if filters.max_price is not None:
        query = query.where(TuitionPost.asked_price <= filters.max_price)
    if filters.tuition_type:
        query = query.where(TuitionPost.tuition_type == filters.tuition_type)

    query = (
        query.order_by(TuitionPost.posted_on.desc(), TuitionPost.created_at.desc(), TuitionPost.id.desc())
        .limit(min(limit, MAX_PAGE_SIZE))
        .offset(offset)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_post(db: AsyncSession, post_id: int) -> TuitionPost:
    post = await db.get(TuitionPost, post_id)
    if post is None:
        msg = f"Post {post_id} not found"
        raise PostNotFoundError(msg)
    return post


def _check_owner(post: TuitionPost, user_id: int) -> None:
    if post.student_id != user_id:
        msg = "Only the student who posted this requirement can change it"
        raise NotPostOwnerError(msg)


async def update_post(db: AsyncSession, post: TuitionPost, user_id: int, changes: dict[str, Any]) -> TuitionPost:
    _check_owner(post, user_id)
    for field, value in changes.items():
        setattr(post, field, value)
    post.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("post_updated", post_id=post.id, fields=sorted(changes))
    return post


async def delete_post(db: AsyncSession, post: TuitionPost, user_id: int) -> None:
    _check_owner(post, user_id)
    await db.delete(post)
    await db.flush()
    logger.info("post_deleted", post_id=post.id, student_id=user_id)


# ---------------------------------------------------------------------------
# Access & unlocks
# ---------------------------------------------------------------------------


async def get_post_access(
    db: AsyncSession,
    post: TuitionPost,
    *,
    user_id: int,
    is_admin: bool,
) -> PostAccess:
    """
    Resolve what the caller may see of a post's contact details.

    The posting student and admins always see them; tutors only once a paid
    unlock exists.
    """
    if is_admin or post.student_id == user_id:
        state = AccessState.UNLOCKED
    else:
        state = await get_access_state(db, user_id, post.id)

    contact = None
    if state is AccessState.UNLOCKED:
        contact = await db.get(Profile, post.student_id)
    return PostAccess(state=state, contact=contact)


async def list_my_unlocks(db: AsyncSession, tutor_id: int) -> list[Unlock]:
    result = await db.execute(
        select(Unlock).where(Unlock.tutor_id == tutor_id).order_by(Unlock.created_at.desc(), Unlock.id.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


async def create_application(
    db: AsyncSession,
    post: TuitionPost,
    tutor_id: int,
    *,
    message: str,
    quoted_price: float,
    price_type: str,
) -> Application:
    """
    Submit a tutor's proposal.

    Raises:
        UnlockRequiredError: If the tutor holds no paid unlock for the post.
    """
    if not await has_paid_unlock(db, tutor_id, post.id):
        msg = "Unlock this post before applying"
        raise UnlockRequiredError(msg)

    application = Application(
        post_id=post.id,
        tutor_id=tutor_id,
        message=message,
        quoted_price=quoted_price,
        price_type=price_type,
        created_at=datetime.now(timezone.utc),
    )
    db.add(application)
    await db.flush()
    logger.info("application_submitted", application_id=application.id, post_id=post.id, tutor_id=tutor_id)
    return application


async def list_applications(db: AsyncSession, post: TuitionPost, user_id: int) -> list[Application]:
    """Applications for a post, visible to the posting student only."""
    _check_owner(post, user_id)
    result = await db.execute(
        select(Application)
        .where(Application.post_id == post.id)
        .order_by(Application.created_at.desc(), Application.id.desc())
    )
    return list(result.scalars().all())
