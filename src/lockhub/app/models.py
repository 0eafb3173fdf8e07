from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, Field

from lockhub.core.models import WireModel


class ResourceClass(str, Enum):
    USER = "user"
    COMPANY = "company"
    CONTRACT = "contract"


class LockRequest(WireModel):
    holder: str = Field(min_length=1, validation_alias=AliasChoices("holder", "processId"))
    ttl: Optional[int] = Field(default=None, gt=0)
    timeout_ms: Optional[int] = Field(default=None, ge=0)


class UnlockRequest(WireModel):
    holder: str = Field(min_length=1, validation_alias=AliasChoices("holder", "processId"))


class GroupLockRequest(WireModel):
    holder: str = Field(min_length=1, validation_alias=AliasChoices("holder", "processId"))
    ttl: Optional[int] = Field(default=None, gt=0)
    member_ids: List[str]


class GroupUnlockRequest(UnlockRequest):
    member_ids: List[str]


class LockResponse(WireModel):
    success: bool
    message: str


class LockStatusResponse(WireModel):
    id: str
    locked: bool
    holder: Optional[str] = None


class HealthResponse(WireModel):
    status: str
    store: str
