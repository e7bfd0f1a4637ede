"""
Pydantic models for validating the structure of responses from the Name
Resolver API.

The API omits any field it has no value for, so every field carries a
default. Whether an entry is usable (status 200, non-empty name and link) is
decided later by the reconciler, not here.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt, TypeAdapter, field_validator


class WireFile(BaseModel):
    """Represents one file entry listed for an accession."""

    name: str = ""
    size: str = ""
    modification_date: Optional[datetime] = Field(
        default=None, alias="modificationDate"
    )
    md5: str = ""
    link: str = ""
    expiration_date: Optional[datetime] = Field(
        default=None, alias="expirationDate"
    )
    service: str = ""

    @field_validator("size", mode="before")
    @classmethod
    def _keep_size_as_text(cls, value):
        """Sizes are passed through untouched, even when sent as numbers."""
        if value is None:
            return ""
        return str(value)

    @field_validator("modification_date", "expiration_date", mode="before")
    @classmethod
    def _blank_date_is_missing(cls, value):
        return value or None


class WirePayload(BaseModel):
    """
    Represents the resolution of one accession.

    A lone object of this shape, with only `status` and `message` set, is
    also what the API sends instead of an array when the whole request
    fails.
    """

    accession: str = ""
    status: StrictInt = 0
    message: str = ""
    files: List[WireFile] = Field(default_factory=list)

    @field_validator("message", "accession", mode="before")
    @classmethod
    def _null_is_blank(cls, value):
        return "" if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _null_is_zero(cls, value):
        return 0 if value is None else value

    @field_validator("files", mode="before")
    @classmethod
    def _null_is_empty(cls, value):
        return [] if value is None else value


# A bare `null` body decodes to None and is read as an empty batch.
PayloadBatch = TypeAdapter(Optional[List[WirePayload]])
