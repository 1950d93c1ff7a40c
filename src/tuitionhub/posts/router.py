"""Posts router: /api/v1/posts/* and /api/v1/unlocks/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tuitionhub.auth.dependencies import SessionContext, get_session_context
from tuitionhub.config import get_settings
from tuitionhub.database import get_session
from tuitionhub.db.models import TuitionPost
from tuitionhub.payments.schemas import ManualPaymentResponse
from tuitionhub.payments.service import price_for, submit_manual_payment
from tuitionhub.payments.state import AccessState
from tuitionhub.posts.schemas import (
    ApplicationCreateRequest,
    ApplicationResponse,
    ContactDetails,
    PostAccessResponse,
    PostCreateRequest,
    PostResponse,
    PostUpdateRequest,
    TuitionType,
    UnlockRequest,
    UnlockResponse,
)
from tuitionhub.posts.service import (
    MAX_PAGE_SIZE,
    PostFilters,
    PostNotFoundError,
    create_application,
    create_post,
    delete_post,
    get_post,
    get_post_access,
    list_applications,
    list_my_unlocks,
    list_posts,
    update_post,
)

router = APIRouter(prefix="/api/v1/posts", tags=["Posts"])
unlocks_router = APIRouter(prefix="/api/v1/unlocks", tags=["Posts"])


async def _load_post(post_id: int, db: AsyncSession) -> TuitionPost:
    try:
        return await get_post(db, post_id)
    except PostNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


@router.post("", response_model=PostResponse, status_code=201)
async def create_tuition_post(
    body: PostCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    """Post a tuition requirement (students only)."""
    try:
        post = await create_post(db, ctx.profile, body.model_dump())
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()
    return PostResponse.model_validate(post)


@router.get("", response_model=list[PostResponse])
async def browse_posts(
    city: str | None = Query(None, max_length=100),
    course: str | None = Query(None, max_length=100),
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    tuition_type: TuitionType | None = None,
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
) -> list[PostResponse]:
    filters = PostFilters(
        city=city,
        course=course,
        min_price=min_price,
        max_price=max_price,
        tuition_type=tuition_type,
    )
    posts = await list_posts(db, filters, limit=limit, offset=offset)
    return [PostResponse.model_validate(p) for p in posts]


@router.get("/{post_id}", response_model=PostResponse)
async def get_tuition_post(
    post_id: int,
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    return PostResponse.model_validate(await _load_post(post_id, db))


@router.patch("/{post_id}", response_model=PostResponse)
async def update_tuition_post(
    post_id: int,
    body: PostUpdateRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    post = await _load_post(post_id, db)
    try:
        post = await update_post(db, post, ctx.user_id, body.model_dump(exclude_unset=True, exclude_none=True))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", status_code=204)
async def delete_tuition_post(
    post_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> Response:
    post = await _load_post(post_id, db)
    try:
        await delete_post(db, post, ctx.user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Contact access
# ---------------------------------------------------------------------------


@router.get("/{post_id}/access", response_model=PostAccessResponse)
async def post_access(
    post_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> PostAccessResponse:
    """Access state of the caller for this post, with contact details once unlocked."""
    post = await _load_post(post_id, db)
    access = await get_post_access(db, post, user_id=ctx.user_id, is_admin=ctx.is_admin)
    contact = None
    if access.contact is not None:
        contact = ContactDetails(full_name=access.contact.full_name, phone=access.contact.phone)
    return PostAccessResponse(
        post_id=post.id,
        state=access.state.value,
        price=price_for("post_view"),
        currency=get_settings().currency,
        contact=contact,
    )


@router.post("/{post_id}/unlock", response_model=ManualPaymentResponse, status_code=201)
async def unlock_post(
    post_id: int,
    body: UnlockRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> ManualPaymentResponse:
    """Start unlocking a post's contact details. Only QR payments are available."""
    if body.method == "razorpay":
        raise HTTPException(status_code=501, detail="Online payments are coming soon. Please pay via QR.")

    post = await _load_post(post_id, db)
    access = await get_post_access(db, post, user_id=ctx.user_id, is_admin=ctx.is_admin)
    if access.state is AccessState.UNLOCKED:
        raise HTTPException(status_code=409, detail="Post is already unlocked")

    payment = await submit_manual_payment(db, ctx.user_id, "post_view", post.id)
    await db.commit()
    return ManualPaymentResponse.model_validate(payment)


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


@router.post("/{post_id}/applications", response_model=ApplicationResponse, status_code=201)
async def apply_to_post(
    post_id: int,
    body: ApplicationCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> ApplicationResponse:
    post = await _load_post(post_id, db)
    try:
        application = await create_application(
            db,
            post,
            ctx.user_id,
            message=body.message,
            quoted_price=body.quoted_price,
            price_type=body.price_type,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()
    return ApplicationResponse.model_validate(application)


@router.get("/{post_id}/applications", response_model=list[ApplicationResponse])
async def post_applications(
    post_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> list[ApplicationResponse]:
    post = await _load_post(post_id, db)
    try:
        applications = await list_applications(db, post, ctx.user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    return [ApplicationResponse.model_validate(a) for a in applications]


@unlocks_router.get("/me", response_model=list[UnlockResponse])
async def my_unlocks(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> list[UnlockResponse]:
    return [UnlockResponse.model_validate(u) for u in await list_my_unlocks(db, ctx.user_id)]
