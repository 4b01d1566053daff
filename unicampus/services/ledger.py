from sqlalchemy.orm import Session

from unicampus.models import Transaction, TransactionStatus


def parse_reported_status(value) -> TransactionStatus | None:
    raw = str(value or "").strip().upper()
    if raw == TransactionStatus.SUCCESSFUL.value:
        return TransactionStatus.SUCCESSFUL
    if raw == TransactionStatus.FAILED.value:
        return TransactionStatus.FAILED
    return None


def next_status(current: TransactionStatus, reported: TransactionStatus | None) -> TransactionStatus | None:
    """Return the status to move to, or None when the report changes nothing.

    SUCCESSFUL is absorbing. A success report also lifts a FAILED entry, since
    webhook delivery order is not guaranteed; a failure report only ever moves
    a PENDING entry.
    """
    if reported == TransactionStatus.SUCCESSFUL and current != TransactionStatus.SUCCESSFUL:
        return TransactionStatus.SUCCESSFUL
    if reported == TransactionStatus.FAILED and current == TransactionStatus.PENDING:
        return TransactionStatus.FAILED
    return None


def find_by_provider_id(db: Session, provider_payment_id: str) -> Transaction | None:
    return db.query(Transaction).filter(Transaction.provider_payment_id == provider_payment_id).first()


def compare_and_set_status(
    db: Session,
    transaction_id: int,
    expected: TransactionStatus,
    new_status: TransactionStatus,
) -> bool:
    # Conditional UPDATE; the caller commits. False means another handler moved it first.
    updated = (
        db.query(Transaction)
        .filter(Transaction.id == transaction_id, Transaction.status == expected)
        .update({Transaction.status: new_status}, synchronize_session=False)
    )
    return updated == 1
