import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from unicampus.models import SubscriptionStatus, Transaction, TransactionStatus, TransactionType, User
from unicampus.services.ledger import compare_and_set_status, find_by_provider_id, next_status, parse_reported_status
from unicampus.services.nkwa import NkwaClient, extract_payment_id

logger = logging.getLogger(__name__)

MAX_TRANSITION_ATTEMPTS = 3
ACCESS_STATUSES = {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL}


class PaymentInitiationError(Exception):
    pass


class LedgerConflictError(Exception):
    pass


class ReconcileOutcome(str, enum.Enum):
    UNKNOWN_TRANSACTION = "unknown_transaction"
    ACTIVATED = "activated"
    ALREADY_APPLIED = "already_applied"
    MARKED_FAILED = "marked_failed"
    UNRECOGNIZED_STATUS = "unrecognized_status"


@dataclass
class ReconcileResult:
    outcome: ReconcileOutcome
    transaction_id: Optional[int] = None
    user_id: Optional[str] = None
    notification_token: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def initiate_subscription(
    db: Session,
    client: NkwaClient,
    *,
    user_id: str,
    phone_number: str,
    amount: int,
    currency: str,
) -> Transaction:
    transaction = Transaction(
        user_id=user_id,
        amount=amount,
        currency=currency,
        tx_type=TransactionType.SUBSCRIPTION,
        phone_number=phone_number,
        status=TransactionStatus.PENDING,
    )
    db.add(transaction)
    db.commit()
    db.refresh(transaction)

    # From here on the entry stays PENDING whatever the provider does.
    try:
        response = client.collect(amount, phone_number, f"Subscription for user {user_id}")
    except Exception as exc:
        logger.error(
            "Payment init failed tx_id=%s user_id=%s status_code=%s error=%s raw=%s",
            transaction.id,
            user_id,
            getattr(exc, "status_code", None),
            exc,
            getattr(exc, "raw", None),
        )
        raise PaymentInitiationError("Failed to initiate payment.") from exc

    payment_id = extract_payment_id(response)
    if not payment_id:
        logger.error("Payment init returned no payment id tx_id=%s response=%s", transaction.id, response)
        raise PaymentInitiationError("Failed to initiate payment.")

    transaction.provider_payment_id = payment_id
    db.commit()
    db.refresh(transaction)
    logger.info("Payment initiated tx_id=%s user_id=%s provider_payment_id=%s", transaction.id, user_id, payment_id)
    return transaction


def activate_subscription(user: User, now: datetime, period_days: int) -> datetime:
    # Flat renewal from the payment time; remaining days are not carried over.
    expiry = now + timedelta(days=period_days)
    user.subscription_status = SubscriptionStatus.ACTIVE
    user.last_payment_date = now
    user.subscription_expiry_date = expiry
    return expiry


def reconcile_payment(
    db: Session,
    provider_payment_id: str,
    reported_status,
    *,
    period_days: int = 30,
    now: datetime | None = None,
) -> ReconcileResult:
    reported = parse_reported_status(reported_status)

    for _ in range(MAX_TRANSITION_ATTEMPTS):
        transaction = find_by_provider_id(db, provider_payment_id)
        if transaction is None:
            logger.warning("Transaction not found for provider payment id=%s", provider_payment_id)
            return ReconcileResult(ReconcileOutcome.UNKNOWN_TRANSACTION)

        result_ids = {"transaction_id": transaction.id, "user_id": transaction.user_id}
        if reported is None:
            logger.info(
                "Ignoring payment status=%r tx_id=%s provider_payment_id=%s",
                reported_status,
                transaction.id,
                provider_payment_id,
            )
            return ReconcileResult(ReconcileOutcome.UNRECOGNIZED_STATUS, **result_ids)

        current = transaction.status
        target = next_status(current, reported)
        if target is None:
            logger.info("Payment report already applied tx_id=%s status=%s reported=%s", transaction.id, current.value, reported.value)
            return ReconcileResult(ReconcileOutcome.ALREADY_APPLIED, **result_ids)

        if not compare_and_set_status(db, transaction.id, current, target):
            db.rollback()
            continue

        if target == TransactionStatus.FAILED:
            db.commit()
            logger.info("Payment failed tx_id=%s user_id=%s", transaction.id, transaction.user_id)
            return ReconcileResult(ReconcileOutcome.MARKED_FAILED, **result_ids)

        user = db.query(User).filter(User.id == transaction.user_id).first()
        token = None
        if user is None:
            logger.error("Payment succeeded for missing user tx_id=%s user_id=%s", transaction.id, transaction.user_id)
        else:
            expiry = activate_subscription(user, now or _utcnow(), period_days)
            token = user.notification_token or None
        # Status flip and subscription window land in the same commit.
        db.commit()
        if user is not None:
            logger.info("Subscription activated user_id=%s tx_id=%s expires=%s", transaction.user_id, transaction.id, expiry.isoformat())
        return ReconcileResult(ReconcileOutcome.ACTIVATED, notification_token=token, **result_ids)

    logger.error("Gave up applying payment provider_payment_id=%s after %s attempts", provider_payment_id, MAX_TRANSITION_ATTEMPTS)
    raise LedgerConflictError(f"Could not apply status for {provider_payment_id}")


def has_subscription_access(user: User, *, is_admin: bool = False) -> bool:
    if is_admin:
        return True
    return user.subscription_status in ACCESS_STATUSES
