import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.auth import require_role, get_password_hash
from app.models import User
from app.schemas import (
    UserResponse,
    UserUpdate,
    AdminUserCreate,
    PointsAward,
    AdminMessageCreate,
    NotificationRead,
    ProgressRead,
)
from app.crud import (
    get_all_users,
    get_user,
    get_user_by_email,
    get_approved_employees,
    create_user,
    save_user,
    delete_user,
    get_all_progress,
)
from app.ledger import ProgressLedger, get_ledger
from app.notifications import notify, NOTIFICATION_APPROVAL, NOTIFICATION_ADMIN_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[UserResponse])
async def admin_list_users(
    search: str | None = None,
    status: str = "all",
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    if status not in ("all", "approved", "pending"):
        raise HTTPException(status_code=400, detail="Unknown status filter")
    return await get_all_users(db, search=search, status=status)


@router.post("/users", response_model=UserResponse)
async def admin_create_user(
    data: AdminUserCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    """Create an account that is approved from the start."""
    if await get_user_by_email(db, data.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        name=data.name,
        email=data.email,
        password_hash=get_password_hash(data.password),
        role=data.role,
        approved=True,
    )
    return await create_user(db, user)


@router.get("/users/{user_id}", response_model=UserResponse)
async def admin_get_user(
    user_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/users/{user_id}", response_model=UserResponse)
async def admin_update_user(
    user_id: int,
    data: UserUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if data.password is not None:
        user.password_hash = get_password_hash(data.password)
    for field, value in data.model_dump(exclude_unset=True, exclude={"password"}).items():
        setattr(user, field, value)
    return await save_user(db, user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def admin_delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
    ledger: ProgressLedger = Depends(get_ledger),
):
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot delete yourself")
    await delete_user(db, user)
    ledger.cache.invalidate(user_id)


@router.post("/users/{user_id}/approve", response_model=UserResponse)
async def admin_approve_user(
    user_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
    ledger: ProgressLedger = Depends(get_ledger),
):
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.approved:
        return user
    user.approved = True
    user = await save_user(db, user)
    logger.info("User %s approved by %s", user.email, current_user.email)
    await notify(
        db,
        user.id,
        NOTIFICATION_APPROVAL,
        "Welcome to the platform! Your registration has been approved.",
        ledger.hub,
    )
    return user


@router.post("/users/{user_id}/points", response_model=UserResponse)
async def admin_award_points(
    user_id: int,
    data: PointsAward,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
    ledger: ProgressLedger = Depends(get_ledger),
):
    return await ledger.award_points(db, user_id, data.points)


@router.post("/notifications", response_model=list[NotificationRead])
async def admin_send_message(
    data: AdminMessageCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
    ledger: ProgressLedger = Depends(get_ledger),
):
    """Message one user, or every approved employee when no user is given."""
    if data.user_id is not None:
        user = await get_user(db, data.user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        recipients = [user]
    else:
        recipients = await get_approved_employees(db)
    sent = []
    for user in recipients:
        sent.append(
            await notify(db, user.id, NOTIFICATION_ADMIN_MESSAGE, data.message, ledger.hub)
        )
    return sent


@router.get("/progress", response_model=list[ProgressRead])
async def admin_list_progress(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    return await get_all_progress(db)
