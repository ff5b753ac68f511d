"""Shared string field types for request schemas."""

from typing import Annotated

from pydantic import AfterValidator, StringConstraints


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


# Rejected when blank after trimming, stored exactly as submitted.
NonBlankStr = Annotated[str, AfterValidator(_require_text)]

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
