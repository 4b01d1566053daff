from sqlalchemy import Column, Integer, String, JSON, Index
from unicampus.core.database import Base
from unicampus.models.base import TimestampMixin


class AdminLog(Base, TimestampMixin):
    __tablename__ = "admin_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(64), nullable=False)
    actor = Column(String(255), nullable=True)
    target = Column(String(255), nullable=True)
    recipient_count = Column(Integer, nullable=True)
    detail = Column(JSON, nullable=True)


Index("ix_admin_logs_action", AdminLog.action)
