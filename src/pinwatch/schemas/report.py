# src/pinwatch/schemas/report.py
"""Report-related Pydantic schemas.

Wire names are camelCase to match the map front end.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from pinwatch.db.time import format_iso
from pinwatch.services.merge import ReportRecord


class ReportCreate(BaseModel):
    """Schema for a new community submission.

    Fields are optional at the schema level so missing values surface as
    domain validation messages instead of framework 422s.
    """

    model_config = ConfigDict(populate_by_name=True)

    added_at: str | None = Field(None, alias="addedAt", description="ISO-8601 UTC timestamp")
    address: str | None = Field(None, description="Free-text street address")
    additional_info: str | None = Field(None, alias="additionalInfo")
    image_path: str | None = Field(None, alias="imagePath", description="Uploaded object path")
    image_url: str | None = Field(None, alias="imageUrl")


class ReportSubmitResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    formatted_address: str = Field(..., serialization_alias="formattedAddress")


class ReportResponse(BaseModel):
    """Schema for report information returned by the API."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    address: str
    additional_info: str = Field(..., serialization_alias="additionalInfo")
    lat: float
    lng: float
    added_at: str = Field(..., serialization_alias="addedAt")
    reported_count: int = Field(..., serialization_alias="reportedCount")
    image_url: str | None = Field(None, serialization_alias="imageUrl")
    image_path: str | None = Field(None, serialization_alias="imagePath")
    verified_at: str | None = Field(None, serialization_alias="verifiedAt")

    @classmethod
    def from_record(cls, record: ReportRecord, *, include_path: bool = False) -> "ReportResponse":
        return cls(
            id=record.key,
            address=record.address,
            additional_info=record.additional_info,
            lat=record.lat,
            lng=record.lng,
            added_at=format_iso(record.added_at),
            reported_count=record.reported_count,
            image_url=record.image_url,
            image_path=record.image_path if include_path else None,
            verified_at=_format_optional(record.verified_at),
        )


def _format_optional(value: datetime | None) -> str | None:
    return format_iso(value) if value is not None else None
