"""Read-side projection for notifications."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class NotificationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    message: str
    type: str
    target_id: Optional[int] = None
    is_read: bool
    created_at: datetime
