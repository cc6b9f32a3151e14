from __future__ import annotations
"""
server/reminder_engine/api/v1/endpoints/notifications.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Boîte de notifications in-app de l'utilisateur (header X-User-Id).

- GET    /notifications            liste paginée (déchronologique), filtre `unread_only`
- GET    /notifications/count      nombre de non lues
- PUT    /notifications/read-all   tout marquer lu
- PUT    /notifications/{id}/read  marquer une notification lue
- DELETE /notifications/{id}       supprimer une notification

Toutes les opérations sont scopées par user_id : l'id d'un autre utilisateur
répond 404, jamais 403 (pas de fuite d'existence).
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from reminder_engine.api.schemas.notification import NotificationPage, Pagination, UnreadCount
from reminder_engine.core.security import get_current_user_id
from reminder_engine.infrastructure.notifications.payloads import in_app_payload
from reminder_engine.infrastructure.persistence.database.session import get_db
from reminder_engine.infrastructure.persistence.repositories.in_app_notification_repository import (
    InAppNotificationRepository,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationPage)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> NotificationPage:
    rows, total = InAppNotificationRepository(db).list_for_user(
        user_id, page=page, limit=limit, unread_only=unread_only
    )
    return NotificationPage(
        data=[in_app_payload(r) for r in rows],
        pagination=Pagination(page=page, limit=limit, total=total, has_more=page * limit < total),
    )


@router.get("/count", response_model=UnreadCount)
async def unread_count(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> UnreadCount:
    return UnreadCount(count=InAppNotificationRepository(db).count_unread(user_id))


@router.put("/read-all")
async def mark_all_read(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict:
    updated = InAppNotificationRepository(db).mark_all_read(user_id)
    db.commit()
    return {"updated": updated}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict:
    repo = InAppNotificationRepository(db)
    if not repo.mark_read(notification_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="notification_not_found")
    db.commit()
    row = repo.get_for_user(notification_id, user_id)
    db.refresh(row)
    return in_app_payload(row)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict:
    if not InAppNotificationRepository(db).delete_for_user(notification_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="notification_not_found")
    db.commit()
    return {"deleted": str(notification_id)}
