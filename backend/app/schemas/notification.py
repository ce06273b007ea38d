from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: int
    user_id: int
    type: str
    message: str
    timestamp: datetime
    read: bool

    class Config:
        from_attributes = True


class AdminMessageCreate(BaseModel):
    message: str
    user_id: Optional[int] = None  # omit to broadcast to every employee
