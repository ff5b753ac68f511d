"""Member and profile schemas."""

from pydantic import BaseModel


class Member(BaseModel):
    id: str
    name: str | None = None


class Profile(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None
