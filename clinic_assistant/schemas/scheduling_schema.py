"""Scheduling data models used by the booking wizard."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Provider(BaseModel):
    """A doctor that accepts appointments."""
    provider_id: str
    name: str
    specialty: str
    city: str

    @property
    def display_name(self) -> str:
        return f"Dr(a). {self.name}"


class Slot(BaseModel):
    """A bookable time on a provider's agenda."""
    slot_id: str
    provider_id: str
    start: datetime
    end: datetime
    available: bool = True

    @property
    def label(self) -> str:
        return f"{self.start:%d/%m/%Y} at {self.start:%H:%M}"


class Booking(BaseModel):
    """A committed appointment."""
    confirmation_code: str
    slot_id: str
    provider_id: str
    patient_name: str
    patient_phone: str
    birth_date: Optional[str] = None
    reason: Optional[str] = None
    start: datetime
    created_at: datetime
    status: str = "confirmed"
