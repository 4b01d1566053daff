import enum
from sqlalchemy import Column, String, Enum, Index, DateTime
from sqlalchemy.orm import relationship
from unicampus.core.database import Base
from unicampus.models.base import TimestampMixin


class SubscriptionStatus(str, enum.Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    EXPIRED = "expired"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class AcademicLevel(str, enum.Enum):
    LEVEL_200 = "LEVEL_200"
    LEVEL_300 = "LEVEL_300"
    LEVEL_400 = "LEVEL_400"
    LEVEL_500 = "LEVEL_500"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    # Identity-provider uid, not generated here.
    id = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    matricule = Column(String(64), nullable=False)
    faculty_id = Column(String(64), nullable=False)
    department_id = Column(String(64), nullable=True)
    level = Column(Enum(AcademicLevel), nullable=True)

    subscription_status = Column(
        Enum(SubscriptionStatus, values_callable=lambda members: [m.value for m in members]),
        nullable=False,
        default=SubscriptionStatus.TRIAL,
    )
    trial_start_date = Column(DateTime(timezone=True), nullable=True)
    last_payment_date = Column(DateTime(timezone=True), nullable=True)
    subscription_expiry_date = Column(DateTime(timezone=True), nullable=True)
    notification_token = Column(String(512), nullable=True)

    transactions = relationship("Transaction", back_populates="user")


# Not unique: duplicates are detected and removed after the write.
Index("ix_users_faculty_matricule", User.faculty_id, User.matricule)
Index("ix_users_faculty_level", User.faculty_id, User.level)
