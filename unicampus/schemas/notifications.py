from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class BroadcastRequest(BaseModel):
    title: str = Field(..., min_length=2, max_length=120)
    body: str = Field(..., min_length=2, max_length=2000)
    target_level: Optional[str] = None
    target_faculty_id: Optional[str] = None


class BroadcastResponse(BaseModel):
    success: bool
    count: int
    message: Optional[str] = None


class AdminLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    actor: Optional[str] = None
    target: Optional[str] = None
    recipient_count: Optional[int] = None
    detail: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
