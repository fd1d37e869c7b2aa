"""Catalog DTOs for API responses."""

from pydantic import BaseModel


class AvailabilityResponse(BaseModel):
    """Capacity decision plus queue depth for a workshop page."""

    workshop_id: int
    allowed: bool
    waitlist: bool
    reason: str | None = None
    remaining: int | None = None
    capacity: int
    waitlist_enabled: bool
    queue_depth: int
