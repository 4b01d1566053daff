from unicampus.models.user import User, SubscriptionStatus, AcademicLevel
from unicampus.models.transaction import Transaction, TransactionStatus, TransactionType
from unicampus.models.admin_log import AdminLog

__all__ = [
    "User",
    "SubscriptionStatus",
    "AcademicLevel",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "AdminLog",
]
