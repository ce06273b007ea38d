from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import UserResponse, ProfileUpdate, BadgeRead, LeaderboardEntry
from app.models import User
from app.database import get_session
from app.crud import get_user_by_email, get_leaderboard, save_user
from app.auth import get_password_hash, get_current_user
from app.badges import get_badge

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    """Return details for the authenticated user."""
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    changes = data.model_dump(exclude_unset=True, exclude={"password"})
    if "email" in changes and changes["email"] != current_user.email:
        if await get_user_by_email(db, changes["email"]):
            raise HTTPException(status_code=400, detail="Email already registered")
    if data.password:
        current_user.password_hash = get_password_hash(data.password)
    for field, value in changes.items():
        setattr(current_user, field, value)
    return await save_user(db, current_user)


@router.get("/me/badges", response_model=list[BadgeRead])
async def my_badges(current_user: User = Depends(get_current_user)):
    badges = [get_badge(badge_id) for badge_id in current_user.badges or []]
    return [BadgeRead(**b) for b in badges if b]


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def leaderboard(
    limit: int | None = None,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    users = await get_leaderboard(db, limit)
    return [
        LeaderboardEntry(
            rank=index,
            id=u.id,
            name=u.name,
            points=u.points,
            badges=u.badges or [],
            profile_image_url=u.profile_image_url,
        )
        for index, u in enumerate(users, start=1)
    ]
