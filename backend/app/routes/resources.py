"""Shared library of external learning resources."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.auth import get_current_user, require_role
from app.models import ExternalResource, User
from app.schemas import ResourceCreate, ResourceRead, ResourceUpdate
from app.crud import get_all_resources, get_resource, save_resource, delete_resource

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("/", response_model=list[ResourceRead])
async def list_resources(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await get_all_resources(db)


@router.post("/", response_model=ResourceRead)
async def add_resource(
    data: ResourceCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    return await save_resource(db, ExternalResource(**data.model_dump()))


@router.put("/{resource_id}", response_model=ResourceRead)
async def edit_resource(
    resource_id: int,
    data: ResourceUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    resource = await get_resource(db, resource_id)
    if not resource:
        raise HTTPException(status_code=404, detail="Resource not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(resource, field, value)
    return await save_resource(db, resource)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_resource(
    resource_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role("admin")),
):
    resource = await get_resource(db, resource_id)
    if not resource:
        raise HTTPException(status_code=404, detail="Resource not found")
    await delete_resource(db, resource)
