# Record types for users and complaints

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class _LenientEnum(str, Enum):
    """Matches submitted values case-insensitively against value or name."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if wanted in (member.value.lower(), member.name.lower()):
                    return member
        return None


class Category(_LenientEnum):
    GARBAGE = "Garbage"
    PATH_HOLES = "Path Holes"
    SERVICE_QUALITY = "Service Quality"
    ELECTRICITY = "Electricity"
    WATER_PIPELINE = "Water Pipeline"
    OTHER = "Other"


class Priority(_LenientEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ComplaintStatus(_LenientEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


# ---------------------------------------------------------------------------
# Pydantic Models
# ---------------------------------------------------------------------------
class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    email: str


class Complaint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str
    description: str
    category: Category
    priority: Priority
    status: ComplaintStatus = ComplaintStatus.PENDING
    location: str
    media: List[str] = Field(default_factory=list)
    user_id: str = Field(..., alias="userId", min_length=1)
    created_at: datetime = Field(..., alias="createdAt")

    @field_validator("media", mode="before")
    @classmethod
    def none_media_is_empty(cls, v):
        return [] if v is None else v

    def to_stored(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    @property
    def is_resolved(self) -> bool:
        return self.status == ComplaintStatus.RESOLVED

