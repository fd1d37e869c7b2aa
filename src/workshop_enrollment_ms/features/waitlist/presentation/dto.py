"""Waitlist DTOs for API requests/responses."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from workshop_enrollment_ms.features.waitlist.domain.enums import WaitlistStatus


class WaitlistJoinRequest(BaseModel):
    """Request to join a workshop's waitlist."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "workshopId": 5,
                "email": "ana@workshops.org",
                "name": "Ana Ruiz",
                "phone": "+1 555 0100",
            }
        },
    )

    workshop_id: int = Field(..., gt=0, alias="workshopId")
    email: EmailStr
    name: str = Field("", max_length=255)
    phone: str = Field("", max_length=50)


class WaitlistJoinResponse(BaseModel):
    entry_id: UUID
    position: int
    status: WaitlistStatus
    created: bool


class WaitlistPositionResponse(BaseModel):
    entry_id: UUID
    position: int
    status: WaitlistStatus
    people_ahead: int


class NotifyNextResponse(BaseModel):
    notified: bool
    queue_depth: int
