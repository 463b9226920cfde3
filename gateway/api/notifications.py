"""
Notification endpoints.

GET    /notifications            - Paginated list with unread count.
PUT    /notifications/read-all   - Mark every notification read.
PUT    /notifications/{id}/read  - Mark one notification read.
DELETE /notifications/{id}       - Delete one notification.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gateway.api.deps import get_current_user, get_session
from gateway.api.serializers import notification_to_dict, pagination, success
from gateway.errors import NotFound
from gateway.models.wallet import Notification
from gateway.security import TokenPayload

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _not_found() -> NotFound:
    return NotFound("Notification not found", code="NOTIFICATION_NOT_FOUND")


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(
        select(Notification)
        .where(Notification.user_id == caller.user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    notifications = [notification_to_dict(n) for n in result.scalars().all()]

    total = await session.scalar(
        select(func.count()).select_from(Notification)
        .where(Notification.user_id == caller.user_id)
    )
    unread = await session.scalar(
        select(func.count()).select_from(Notification)
        .where(Notification.user_id == caller.user_id, Notification.read.is_(False))
    )
    return success("Notifications retrieved successfully", {
        "notifications": notifications,
        "unreadCount": unread or 0,
        "pagination": pagination(page, limit, total or 0),
    })


@router.put("/read-all")
async def mark_all_read(
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await session.execute(
        update(Notification)
        .where(Notification.user_id == caller.user_id)
        .values(read=True)
    )
    await session.commit()
    return success("All notifications marked as read")


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    updated = await session.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == caller.user_id)
        .values(read=True)
    )
    if updated.rowcount != 1:
        await session.rollback()
        raise _not_found()
    await session.commit()
    return success("Notification marked as read")


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    deleted = await session.execute(
        delete(Notification)
        .where(Notification.id == notification_id, Notification.user_id == caller.user_id)
    )
    if deleted.rowcount != 1:
        await session.rollback()
        raise _not_found()
    await session.commit()
    return success("Notification deleted successfully")
