from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from unicampus.core.database import get_db
from unicampus.core.security import decode_token, is_privileged
from unicampus.models import User

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Caller:
    user_id: str
    is_admin: bool = False
    email: str | None = None


def get_caller(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> Caller:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        claims = decode_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if claims.get("type", "access") != "access":
        raise HTTPException(status_code=401, detail="Invalid token")
    subject = str(claims.get("sub") or "").strip()
    if not subject:
        raise HTTPException(status_code=401, detail="Invalid token")
    return Caller(user_id=subject, is_admin=is_privileged(claims), email=claims.get("email"))


def get_current_user(caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> User:
    user = db.query(User).filter(User.id == caller.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Student profile not found")
    return user


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return caller
