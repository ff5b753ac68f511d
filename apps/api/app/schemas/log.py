"""Activity log schemas."""

from datetime import datetime

from pydantic import BaseModel

from app.schemas.fields import NonBlankStr, TrimmedStr


class CreateLogRequest(BaseModel):
    description: NonBlankStr
    user_id: TrimmedStr


class LogEntry(BaseModel):
    id: int | str
    user_id: str
    description: str
    created_at: datetime
