import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from unicampus.models import Transaction, User

logger = logging.getLogger(__name__)


def _holders(db: Session, faculty_id: str, matricule: str) -> list:
    # Oldest first; every guard run agrees on the same survivor.
    return (
        db.query(User.id, User.created_at)
        .filter(User.faculty_id == faculty_id, User.matricule == matricule)
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )


def _remove_duplicates(db: Session, faculty_id: str, matricule: str, survivor_id: str, duplicate_ids: list) -> list:
    """Delete duplicate profiles and return the removed ids.

    Ledger entries are never deleted, so a duplicate that already owns
    transactions is left in place and reported for manual review.
    """
    owners = {
        row.user_id
        for row in db.query(Transaction.user_id).filter(Transaction.user_id.in_(duplicate_ids)).distinct().all()
    }
    for user_id in duplicate_ids:
        if user_id in owners:
            logger.error(
                "Duplicate matricule %s in faculty %s: user_id=%s owns ledger entries, left for manual review (kept user_id=%s)",
                matricule,
                faculty_id,
                user_id,
                survivor_id,
            )

    removable = [user_id for user_id in duplicate_ids if user_id not in owners]
    if removable:
        db.query(User).filter(User.id.in_(removable)).delete(synchronize_session=False)
        db.commit()
    return removable


def enforce_matricule_uniqueness(db: Session, record: User) -> bool:
    """Run after a student profile is committed. Returns False if the profile was removed.

    The store cannot reject a duplicate (faculty_id, matricule) at insert time. The
    earliest holder of the pair is kept and every later holder visible to this run is
    deleted, whichever of them triggered it.
    """
    record_id = record.id
    faculty_id = record.faculty_id
    matricule = record.matricule

    holders = _holders(db, faculty_id, matricule)
    holder_ids = [row.id for row in holders]
    if record_id not in holder_ids:
        # Already removed by the guard run of an earlier holder.
        return False
    if len(holder_ids) == 1:
        return True

    survivor_id = holder_ids[0]
    removed = _remove_duplicates(db, faculty_id, matricule, survivor_id, holder_ids[1:])
    if removed:
        logger.warning(
            "Fraud detected: duplicate matricule %s in faculty %s, deleted user_id=%s (kept user_id=%s)",
            matricule,
            faculty_id,
            ", ".join(removed),
            survivor_id,
        )
    return record_id not in removed


def sweep_duplicate_matricules(db: Session) -> int:
    groups = (
        db.query(User.faculty_id, User.matricule)
        .group_by(User.faculty_id, User.matricule)
        .having(func.count(User.id) > 1)
        .all()
    )
    removed = 0
    for faculty_id, matricule in groups:
        holder_ids = [row.id for row in _holders(db, faculty_id, matricule)]
        if len(holder_ids) <= 1:
            continue
        deleted = _remove_duplicates(db, faculty_id, matricule, holder_ids[0], holder_ids[1:])
        if deleted:
            removed += len(deleted)
            logger.warning(
                "Sweep removed %s duplicate profile(s) for matricule %s in faculty %s: %s",
                len(deleted),
                matricule,
                faculty_id,
                ", ".join(deleted),
            )
    return removed
