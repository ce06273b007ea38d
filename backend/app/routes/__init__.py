"""Aggregate import for all API route modules."""

from . import (
    auth,
    users,
    admin,
    courses,
    progress,
    notifications,
    resources,
    settings,
    ai,
)

__all__ = [
    "auth",
    "users",
    "admin",
    "courses",
    "progress",
    "notifications",
    "resources",
    "settings",
    "ai",
]
