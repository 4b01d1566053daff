import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
from unicampus.core.database import Base
from unicampus.models.base import TimestampMixin


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"


class TransactionType(str, enum.Enum):
    SUBSCRIPTION = "SUBSCRIPTION"


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.id"), nullable=False)
    # Minor currency unit.
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
    tx_type = Column(Enum(TransactionType), nullable=False, default=TransactionType.SUBSCRIPTION)
    phone_number = Column(String(32), nullable=False)
    provider_payment_id = Column(String(128), unique=True, nullable=True, index=True)
    status = Column(Enum(TransactionStatus), nullable=False, default=TransactionStatus.PENDING)

    user = relationship("User", back_populates="transactions")


Index("ix_transactions_user_status", Transaction.user_id, Transaction.status)
