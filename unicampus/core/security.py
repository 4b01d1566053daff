from datetime import datetime, timedelta, timezone

import jwt

from unicampus.core.config import get_settings


def create_access_token(subject: str, role: str = "user", expires_minutes: int | None = None) -> str:
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject),
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    settings = get_settings()
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def is_privileged(claims: dict) -> bool:
    return claims.get("admin") is True or str(claims.get("role") or "").lower() == "admin"
