"""Research record API schemas."""

from datetime import datetime

from pydantic import BaseModel

from app.schemas.fields import NonBlankStr


class CreateResearchRequest(BaseModel):
    description: NonBlankStr
    file_url: str | None = None


class ResearchRecord(BaseModel):
    id: int | str
    user_id: str
    description: str
    file_url: str | None = None
    created_at: datetime


class ResearchSummaryItem(BaseModel):
    id: int | str
    description: str
    file_url: str | None = None
    created_at: datetime


class MemberResearchSummary(BaseModel):
    id: str
    name: str | None = None
    recs: list[ResearchSummaryItem]


class UploadResponse(BaseModel):
    message: str
    data: ResearchRecord
