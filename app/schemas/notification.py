from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional


class OutboxEmailResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    to_address: str
    subject: str
    category: Optional[str] = None
    status: str
    attempts: int
    last_error: Optional[str] = None
    created_at: datetime
    sent_at: Optional[datetime] = None


class OutboxRetryRequest(BaseModel):
    ids: Optional[List[int]] = None
