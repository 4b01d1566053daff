from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from unicampus.core.database import get_db
from unicampus.dependencies import require_admin
from unicampus.models import AdminLog, Transaction, TransactionStatus
from unicampus.schemas.notifications import AdminLogOut
from unicampus.schemas.payments import TransactionOut

router = APIRouter()


def _coerce_status(value: Optional[str]) -> Optional[TransactionStatus]:
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    for member in TransactionStatus:
        if raw.upper() == member.value:
            return member
    raise HTTPException(status_code=400, detail="Invalid status")


@router.get("/logs", response_model=list[AdminLogOut])
def list_admin_logs(
    action: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=500),
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(AdminLog)
    if action:
        query = query.filter(AdminLog.action == action.strip().upper())
    return query.order_by(AdminLog.id.desc()).limit(limit).all()


@router.get("/transactions", response_model=list[TransactionOut])
def list_transactions(
    status: Optional[str] = None,
    user_id: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=500),
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Transaction)
    coerced = _coerce_status(status)
    if coerced:
        query = query.filter(Transaction.status == coerced)
    if user_id:
        query = query.filter(Transaction.user_id == user_id)
    return query.order_by(Transaction.id.desc()).limit(limit).all()
