"""Endpoints for reading notifications and streaming new ones."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.auth import get_current_user, get_user_from_token
from app.models import User
from app.schemas import NotificationRead
from app.crud import (
    list_notifications,
    get_notification,
    mark_notification_read,
    mark_all_notifications_read,
)
from app.ledger import ProgressLedger, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationRead])
async def my_notifications(
    unread_only: bool = False,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await list_notifications(db, current_user.id, unread_only=unread_only)


@router.post("/read-all")
async def read_all(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    count = await mark_all_notifications_read(db, current_user.id)
    return {"count": count}


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def read_notification(
    notification_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    notification = await get_notification(db, notification_id)
    if not notification or notification.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Not found")
    if notification.read:
        return notification
    return await mark_notification_read(db, notification)


@router.websocket("/ws")
async def notification_stream(
    websocket: WebSocket,
    token: str,
    db: AsyncSession = Depends(get_session),
    ledger: ProgressLedger = Depends(get_ledger),
):
    """Push notifications addressed to the token's user as they are created."""
    user = await get_user_from_token(db, token)
    # release the pooled connection before streaming
    await db.close()
    if user is None or not user.approved:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    queue: asyncio.Queue[NotificationRead] = asyncio.Queue()
    # subscribe before accepting so nothing published after the handshake is missed
    unsubscribe = ledger.hub.subscribe(user.id, queue.put_nowait)
    try:
        await websocket.accept()
        logger.info("Notification stream opened for user %s", user.id)
        await _forward(websocket, queue)
    except WebSocketDisconnect:
        logger.debug("User %s disconnected during a send", user.id)
    finally:
        unsubscribe()
    logger.info("Notification stream closed for user %s", user.id)


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Send queued notifications until the client disconnects."""
    receiver = asyncio.create_task(websocket.receive())
    getter = asyncio.create_task(queue.get())
    try:
        while True:
            done, _ = await asyncio.wait(
                {receiver, getter}, return_when=asyncio.FIRST_COMPLETED
            )
            if receiver in done:
                if receiver.result()["type"] == "websocket.disconnect":
                    return
                # client messages carry nothing; keep listening for the close
                receiver = asyncio.create_task(websocket.receive())
            if getter in done:
                await websocket.send_json(getter.result().model_dump(mode="json"))
                getter = asyncio.create_task(queue.get())
    finally:
        receiver.cancel()
        getter.cancel()
