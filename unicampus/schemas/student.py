from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from unicampus.models.user import AcademicLevel, SubscriptionStatus


class StudentRegisterRequest(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=2, max_length=255)
    matricule: str = Field(..., min_length=1, max_length=64)
    faculty_id: str = Field(..., min_length=1, max_length=64)
    department_id: Optional[str] = Field(default=None, max_length=64)
    level: Optional[AcademicLevel] = None
    notification_token: Optional[str] = Field(default=None, max_length=512)


class StudentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    matricule: str
    faculty_id: str
    department_id: Optional[str] = None
    level: Optional[AcademicLevel] = None
    subscription_status: SubscriptionStatus
    trial_start_date: Optional[datetime] = None
    last_payment_date: Optional[datetime] = None
    subscription_expiry_date: Optional[datetime] = None


class NotificationTokenRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=512)


class SubscriptionOut(BaseModel):
    subscription_status: SubscriptionStatus
    last_payment_date: Optional[datetime] = None
    subscription_expiry_date: Optional[datetime] = None
    has_access: bool
