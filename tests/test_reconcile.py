import logging
from datetime import datetime, timedelta, timezone

import pytest

from unicampus.models import SubscriptionStatus, Transaction, TransactionStatus, TransactionType, User
from unicampus.services import subscriptions
from unicampus.services.ledger import compare_and_set_status
from unicampus.services.subscriptions import LedgerConflictError, ReconcileOutcome, reconcile_payment

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _naive(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@pytest.fixture
def pending(db):
    user = User(
        id="u1",
        email="student@example.com",
        full_name="Student One",
        matricule="M1",
        faculty_id="F1",
        subscription_status=SubscriptionStatus.TRIAL,
        notification_token="fcm-token-1",
        subscription_expiry_date=NOW + timedelta(days=10),
    )
    tx = Transaction(
        user_id="u1",
        amount=399,
        currency="XAF",
        tx_type=TransactionType.SUBSCRIPTION,
        phone_number="670000000",
        provider_payment_id="pay_1",
        status=TransactionStatus.PENDING,
    )
    db.add_all([user, tx])
    db.commit()
    return tx.id


def _state(db):
    db.expire_all()
    return db.get(User, "u1"), db.query(Transaction).filter(Transaction.provider_payment_id == "pay_1").one()


def test_success_activates_for_thirty_days_from_payment(db, pending):
    result = reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW)

    assert result.outcome == ReconcileOutcome.ACTIVATED
    assert result.transaction_id == pending
    assert result.user_id == "u1"
    assert result.notification_token == "fcm-token-1"
    user, tx = _state(db)
    assert tx.status == TransactionStatus.SUCCESSFUL
    assert user.subscription_status == SubscriptionStatus.ACTIVE
    assert _naive(user.last_payment_date) == _naive(NOW)
    # Flat renewal: the 10 days left on the old window are not carried over.
    assert _naive(user.subscription_expiry_date) == _naive(NOW + timedelta(days=30))


def test_duplicate_success_is_a_noop(db, pending):
    reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW)
    user, _ = _state(db)
    first_expiry = user.subscription_expiry_date

    result = reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW + timedelta(days=3))

    assert result.outcome == ReconcileOutcome.ALREADY_APPLIED
    assert result.notification_token is None
    user, _ = _state(db)
    assert user.subscription_expiry_date == first_expiry


def test_failure_marks_pending_as_failed_without_touching_subscription(db, pending):
    result = reconcile_payment(db, "pay_1", "FAILED", now=NOW)

    assert result.outcome == ReconcileOutcome.MARKED_FAILED
    user, tx = _state(db)
    assert tx.status == TransactionStatus.FAILED
    assert user.subscription_status == SubscriptionStatus.TRIAL
    assert user.last_payment_date is None

    again = reconcile_payment(db, "pay_1", "FAILED", now=NOW)
    assert again.outcome == ReconcileOutcome.ALREADY_APPLIED


def test_failed_then_successful_ends_successful(db, pending):
    reconcile_payment(db, "pay_1", "FAILED", now=NOW)
    result = reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW)

    assert result.outcome == ReconcileOutcome.ACTIVATED
    user, tx = _state(db)
    assert tx.status == TransactionStatus.SUCCESSFUL
    assert user.subscription_status == SubscriptionStatus.ACTIVE


def test_successful_then_failed_is_not_reverted(db, pending):
    reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW)
    result = reconcile_payment(db, "pay_1", "FAILED", now=NOW)

    assert result.outcome == ReconcileOutcome.ALREADY_APPLIED
    user, tx = _state(db)
    assert tx.status == TransactionStatus.SUCCESSFUL
    assert user.subscription_status == SubscriptionStatus.ACTIVE


def test_unrecognized_status_changes_nothing(db, pending):
    result = reconcile_payment(db, "pay_1", "pending", now=NOW)

    assert result.outcome == ReconcileOutcome.UNRECOGNIZED_STATUS
    user, tx = _state(db)
    assert tx.status == TransactionStatus.PENDING
    assert user.subscription_status == SubscriptionStatus.TRIAL


def test_unknown_provider_id_logs_warning(db, pending, caplog):
    caplog.set_level(logging.WARNING, logger="unicampus.services.subscriptions")

    result = reconcile_payment(db, "pay_missing", "SUCCESSFUL", now=NOW)

    assert result.outcome == ReconcileOutcome.UNKNOWN_TRANSACTION
    assert "pay_missing" in caplog.text
    _, tx = _state(db)
    assert tx.status == TransactionStatus.PENDING


def test_user_without_token_gets_no_notification_target(db, pending):
    user = db.get(User, "u1")
    user.notification_token = None
    db.commit()

    result = reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW)

    assert result.outcome == ReconcileOutcome.ACTIVATED
    assert result.notification_token is None


def test_lost_status_race_is_retried_against_the_winner(db, pending, monkeypatch):
    calls = []

    def _lose_once(session, transaction_id, expected, new):
        calls.append(expected)
        if len(calls) == 1:
            # Another handler applies the same report first.
            compare_and_set_status(session, transaction_id, expected, new)
            session.commit()
            return False
        return compare_and_set_status(session, transaction_id, expected, new)

    monkeypatch.setattr(subscriptions, "compare_and_set_status", _lose_once)
    result = reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW)

    assert result.outcome == ReconcileOutcome.ALREADY_APPLIED
    assert calls == [TransactionStatus.PENDING]
    _, tx = _state(db)
    assert tx.status == TransactionStatus.SUCCESSFUL


def test_lost_status_race_retries_and_applies(db, pending, monkeypatch):
    calls = []

    def _lose_once(session, transaction_id, expected, new):
        calls.append(expected)
        if len(calls) == 1:
            return False
        return compare_and_set_status(session, transaction_id, expected, new)

    monkeypatch.setattr(subscriptions, "compare_and_set_status", _lose_once)
    result = reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW)

    assert result.outcome == ReconcileOutcome.ACTIVATED
    assert len(calls) == 2
    user, tx = _state(db)
    assert tx.status == TransactionStatus.SUCCESSFUL
    assert user.subscription_status == SubscriptionStatus.ACTIVE


def test_status_race_gives_up_after_max_attempts(db, pending, monkeypatch):
    calls = []
    monkeypatch.setattr(subscriptions, "compare_and_set_status", lambda *args: calls.append(args) or False)

    with pytest.raises(LedgerConflictError):
        reconcile_payment(db, "pay_1", "SUCCESSFUL", now=NOW)

    assert len(calls) == subscriptions.MAX_TRANSITION_ATTEMPTS
    user, tx = _state(db)
    assert tx.status == TransactionStatus.PENDING
    assert user.subscription_status == SubscriptionStatus.TRIAL
