from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials, messaging

from unicampus.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "unicampus-push"
# FCM rejects multicast batches above this size.
MULTICAST_BATCH_SIZE = 500

PAYMENT_CONFIRMED_TITLE = "Payment Confirmed!"
PAYMENT_CONFIRMED_BODY = "Your subscription is now active."


def _firebase_app(settings: Settings):
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass
    if settings.firebase_credentials_path:
        cred = credentials.Certificate(settings.firebase_credentials_path)
    else:
        cred = credentials.ApplicationDefault()
    return firebase_admin.initialize_app(
        cred,
        {"httpTimeout": settings.push_timeout_seconds},
        name=FIREBASE_APP_NAME,
    )


def _provider(settings: Settings) -> str:
    provider = (settings.push_provider or "console").lower()
    if provider not in ("console", "fcm"):
        raise ValueError(f"Unsupported PUSH_PROVIDER: {settings.push_provider}")
    return provider


def send_push(token: str, title: str, body: str, settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    if _provider(settings) == "console":
        logger.info("[push][console] token=%s... title=%s body=%s", token[:8], title, body)
        return

    message = messaging.Message(
        token=token,
        notification=messaging.Notification(title=title, body=body),
    )
    messaging.send(message, app=_firebase_app(settings))


def send_push_multicast(tokens: list[str], title: str, body: str, settings: Settings | None = None) -> int:
    settings = settings or get_settings()
    tokens = [t for t in dict.fromkeys(tokens) if t]
    if not tokens:
        return 0
    if _provider(settings) == "console":
        logger.info("[push][console] multicast recipients=%s title=%s body=%s", len(tokens), title, body)
        return len(tokens)

    app = _firebase_app(settings)
    delivered = 0
    for start in range(0, len(tokens), MULTICAST_BATCH_SIZE):
        batch = tokens[start:start + MULTICAST_BATCH_SIZE]
        message = messaging.MulticastMessage(
            tokens=batch,
            notification=messaging.Notification(title=title, body=body),
        )
        response = messaging.send_each_for_multicast(message, app=app)
        delivered += response.success_count
        if response.failure_count:
            logger.warning("Push multicast batch had %s failure(s) out of %s", response.failure_count, len(batch))
    return delivered


def send_payment_confirmation(user_id: str, token: str, settings: Settings | None = None) -> bool:
    # Side effect of activation; never allowed to fail the reconciliation.
    try:
        send_push(token, PAYMENT_CONFIRMED_TITLE, PAYMENT_CONFIRMED_BODY, settings=settings)
    except Exception as exc:
        logger.error("Push notification failed user_id=%s error=%s", user_id, exc)
        return False
    return True
