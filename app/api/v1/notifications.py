"""
Notification endpoints
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user
from app.models.user import User
from app.schemas.notification import NotificationOut, MarkAllReadResponse
from app.services.notification_service import list_notifications, mark_as_read, mark_all_as_read

router = APIRouter()


@router.get("", response_model=List[NotificationOut])
async def list_notifications_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return list_notifications(db, current_user.id)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return MarkAllReadResponse(updated=mark_all_as_read(db, current_user.id))


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read_endpoint(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return mark_as_read(db, notification_id, current_user.id)
