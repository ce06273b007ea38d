from typing import Literal, Optional
from pydantic import BaseModel


class ResourceBase(BaseModel):
    title: str
    description: str = ""
    url: str
    type: Literal["book", "article", "video"] = "article"


class ResourceCreate(ResourceBase):
    pass


class ResourceRead(ResourceBase):
    id: int

    class Config:
        from_attributes = True


class ResourceUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    type: Optional[Literal["book", "article", "video"]] = None
