import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from unicampus.core.config import Settings, get_settings
from unicampus.core.database import get_db
from unicampus.dependencies import Caller, require_admin
from unicampus.models import AcademicLevel, AdminLog, User
from unicampus.schemas.notifications import BroadcastRequest, BroadcastResponse
from unicampus.services.push import send_push_multicast

router = APIRouter()
logger = logging.getLogger(__name__)


def _target(value: str | None) -> str | None:
    text = (value or "").strip()
    if not text or text.upper() == "ALL":
        return None
    return text


def _coerce_level(raw: str) -> AcademicLevel:
    value = raw.strip().upper()
    for level in AcademicLevel:
        if value == level.value:
            return level
    raise HTTPException(status_code=400, detail="Invalid target level")


@router.post("/broadcast", response_model=BroadcastResponse)
def send_broadcast(
    payload: BroadcastRequest,
    admin: Caller = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    faculty_id = _target(payload.target_faculty_id)
    level_raw = _target(payload.target_level)
    level = _coerce_level(level_raw) if level_raw else None

    query = db.query(User.notification_token).filter(
        User.notification_token.isnot(None),
        User.notification_token != "",
    )
    if faculty_id:
        query = query.filter(User.faculty_id == faculty_id)
    if level:
        query = query.filter(User.level == level)

    tokens = [row[0] for row in query.all()]
    if not tokens:
        return BroadcastResponse(success=True, count=0, message="No matching users found.")

    try:
        delivered = send_push_multicast(tokens, payload.title, payload.body, settings=settings)
    except Exception as exc:
        logger.error("Broadcast delivery failed recipients=%s error=%s", len(tokens), exc)
        raise HTTPException(status_code=502, detail="Broadcast delivery failed")

    db.add(
        AdminLog(
            action="BROADCAST_SENT",
            actor=admin.email or admin.user_id,
            target=faculty_id or "ALL",
            recipient_count=delivered,
            detail={
                "title": payload.title,
                "target_level": level.value if level else "ALL",
                "target_faculty_id": faculty_id or "ALL",
            },
        )
    )
    db.commit()
    return BroadcastResponse(success=True, count=delivered)
