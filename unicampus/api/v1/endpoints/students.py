from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from unicampus.core.database import get_db
from unicampus.dependencies import Caller, get_caller, get_current_user
from unicampus.middlewares.rate_limit import limiter
from unicampus.models import SubscriptionStatus, User
from unicampus.schemas.student import NotificationTokenRequest, StudentOut, StudentRegisterRequest, SubscriptionOut
from unicampus.services.matricule import enforce_matricule_uniqueness
from unicampus.services.subscriptions import has_subscription_access

router = APIRouter()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@router.post("/me", response_model=StudentOut, status_code=201)
@limiter.limit("10/minute")
def register_profile(
    request: Request,
    payload: StudentRegisterRequest,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
):
    if db.query(User).filter(User.id == caller.user_id).first():
        raise HTTPException(status_code=400, detail="Profile already exists")

    matricule = payload.matricule.strip()
    faculty_id = payload.faculty_id.strip()
    if not matricule or not faculty_id:
        raise HTTPException(status_code=400, detail="Matricule and faculty are required")

    user = User(
        id=caller.user_id,
        email=payload.email,
        full_name=payload.full_name.strip(),
        matricule=matricule,
        faculty_id=faculty_id,
        department_id=payload.department_id,
        level=payload.level,
        subscription_status=SubscriptionStatus.TRIAL,
        trial_start_date=_utcnow(),
        notification_token=payload.notification_token or None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    if not enforce_matricule_uniqueness(db, user):
        raise HTTPException(status_code=409, detail="Matricule already registered for this faculty")
    return user


@router.get("/me", response_model=StudentOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.patch("/me/notification-token", response_model=StudentOut)
def update_notification_token(
    payload: NotificationTokenRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user.notification_token = payload.token.strip()
    db.commit()
    db.refresh(user)
    return user


@router.get("/me/subscription", response_model=SubscriptionOut)
def my_subscription(
    caller: Caller = Depends(get_caller),
    user: User = Depends(get_current_user),
):
    return SubscriptionOut(
        subscription_status=user.subscription_status,
        last_payment_date=user.last_payment_date,
        subscription_expiry_date=user.subscription_expiry_date,
        has_access=has_subscription_access(user, is_admin=caller.is_admin),
    )
