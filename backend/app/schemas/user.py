# app/schemas/user.py

from datetime import datetime
from pydantic import BaseModel, EmailStr


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    approved: bool
    points: int
    badges: list[str]
    profile_image_url: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    """Fields an administrator may change on any account."""

    name: str | None = None
    email: EmailStr | None = None
    role: str | None = None
    approved: bool | None = None
    password: str | None = None
    profile_image_url: str | None = None


class ProfileUpdate(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None
    profile_image_url: str | None = None


class AdminUserCreate(UserCreate):
    role: str = "employee"


class PointsAward(BaseModel):
    points: int


class LeaderboardEntry(BaseModel):
    rank: int
    id: int
    name: str
    points: int
    badges: list[str]
    profile_image_url: str | None = None
