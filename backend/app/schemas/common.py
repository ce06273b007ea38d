from typing import Literal
from pydantic import BaseModel


class Toast(BaseModel):
    """Transient message the client shows once."""

    message: str
    type: Literal["success", "error", "info"] = "info"


class BadgeRead(BaseModel):
    id: str
    name: str
    description: str
    points: int
