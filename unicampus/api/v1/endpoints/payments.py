import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from unicampus.core.config import Settings, get_settings
from unicampus.core.database import get_db
from unicampus.dependencies import get_current_user
from unicampus.middlewares.rate_limit import limiter
from unicampus.models import User
from unicampus.schemas.payments import SubscribeRequest, SubscribeResponse, WebhookAck
from unicampus.services.nkwa import NkwaClient
from unicampus.services.push import send_payment_confirmation
from unicampus.services.signature import WebhookVerificationError, verify_webhook_signature
from unicampus.services.subscriptions import (
    PaymentInitiationError,
    ReconcileOutcome,
    initiate_subscription,
    reconcile_payment,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def get_nkwa_client(settings: Settings = Depends(get_settings)) -> NkwaClient:
    return NkwaClient(settings)


@router.post("/subscribe", response_model=SubscribeResponse)
@limiter.limit("5/minute")
def subscribe(
    request: Request,
    payload: SubscribeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client: NkwaClient = Depends(get_nkwa_client),
):
    phone_number = (payload.phone_number or "").strip()
    if not phone_number:
        raise HTTPException(status_code=400, detail="Phone number is required")

    try:
        transaction = initiate_subscription(
            db,
            client,
            user_id=user.id,
            phone_number=phone_number,
            amount=settings.subscription_amount,
            currency=settings.subscription_currency,
        )
    except PaymentInitiationError:
        raise HTTPException(status_code=502, detail="Failed to initiate payment.")

    return SubscribeResponse(
        transaction_id=transaction.id,
        provider_payment_id=transaction.provider_payment_id,
    )


@router.post("/webhook", response_model=WebhookAck)
async def nkwa_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    signature = request.headers.get("x-signature")
    timestamp = request.headers.get("x-timestamp")
    if not signature or not timestamp:
        logger.warning("Webhook missing security headers")
        raise HTTPException(status_code=400, detail="Missing Headers")

    body = await request.body()
    try:
        verified = verify_webhook_signature(
            timestamp,
            settings.nkwa_webhook_url,
            body,
            signature,
            settings.nkwa_public_key_pem,
        )
    except WebhookVerificationError as exc:
        logger.error("Webhook verification error: %s", exc)
        raise HTTPException(status_code=500, detail="Verification Error")
    if not verified:
        logger.error("Webhook signature verification FAILED")
        raise HTTPException(status_code=401, detail="Invalid Signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")
    payment_id = payload.get("id") if isinstance(payload, dict) else None
    if not isinstance(payment_id, str) or not payment_id:
        raise HTTPException(status_code=400, detail="Invalid payload")

    try:
        result = reconcile_payment(
            db,
            payment_id,
            payload.get("status"),
            period_days=settings.subscription_period_days,
        )
    except Exception:
        db.rollback()
        logger.exception("Webhook processing failed provider_payment_id=%s", payment_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")

    # Runs after the response is sent; the provider never waits on push delivery.
    if result.outcome == ReconcileOutcome.ACTIVATED and result.notification_token:
        background_tasks.add_task(send_payment_confirmation, result.user_id, result.notification_token, settings)

    return WebhookAck(outcome=result.outcome.value)
