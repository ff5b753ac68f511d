"""Unauthenticated system endpoint schemas."""

from pydantic import BaseModel, ConfigDict, Field


class AnonKeyResponse(BaseModel):
    """Public provider credentials handed to browser clients."""

    anon_key: str = Field(alias="anonKey")
    supabase_url: str = Field(alias="supabaseUrl")

    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    status: str
