"""
In-memory scheduling system.

In production this would be the clinic's agenda service; here a seeded
two-week schedule is generated per provider so the booking wizard has
realistic, deterministic data to list.
"""

import logging
import random
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Protocol

from clinic_assistant.schemas.scheduling_schema import Booking, Provider, Slot
from clinic_assistant.tools.errors import BookingRejectedError, SlotUnavailableError

logger = logging.getLogger(__name__)

# Schedule generation parameters
SCHEDULE_DAYS = 14
AVAILABILITY_PROBABILITY = 0.6
SCHEDULE_SEED = 42
SLOT_MINUTES = 30
CLINIC_HOURS = [8, 9, 10, 11, 14, 15, 16, 17]

PROVIDERS: list[Provider] = [
    Provider(provider_id="med-001", name="Ana Souza", specialty="Cardiology", city="Sao Paulo"),
    Provider(provider_id="med-002", name="Carlos Lima", specialty="Cardiology", city="Campinas"),
    Provider(provider_id="med-003", name="Beatriz Rocha", specialty="Dermatology", city="Sao Paulo"),
    Provider(provider_id="med-004", name="Daniel Alves", specialty="Orthopedics", city="Santo Andre"),
    Provider(provider_id="med-005", name="Elisa Martins", specialty="Orthopedics", city="Sao Paulo"),
    Provider(provider_id="med-006", name="Fernando Costa", specialty="Pediatrics", city="Campinas"),
]


class Scheduler(Protocol):
    """Scheduling collaborator consumed by the booking wizard."""

    def list_specialties(self) -> list[str]: ...

    def list_providers_by_specialty(self, specialty: str) -> list[Provider]: ...

    def list_available_slots(self, provider_id: str) -> list[Slot]: ...

    def commit_booking(
        self,
        slot_id: str,
        patient_name: str,
        patient_phone: str,
        birth_date: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> str: ...


def _generate_slots(providers: list[Provider], start_day: date, seed: int) -> dict[str, Slot]:
    """Generate a two-week agenda per provider, skipping weekends."""
    rng = random.Random(seed)
    slots: dict[str, Slot] = {}
    for provider in providers:
        for day_offset in range(1, SCHEDULE_DAYS + 1):
            day = start_day + timedelta(days=day_offset)
            if day.weekday() >= 5:
                continue
            for hour in CLINIC_HOURS:
                if rng.random() >= AVAILABILITY_PROBABILITY:
                    continue
                start = datetime.combine(day, time(hour, 0))
                slot_id = f"{provider.provider_id}-{start:%Y%m%d%H%M}"
                slots[slot_id] = Slot(
                    slot_id=slot_id,
                    provider_id=provider.provider_id,
                    start=start,
                    end=start + timedelta(minutes=SLOT_MINUTES),
                )
    return slots


class InMemoryScheduler:
    """Scheduler backed by a generated agenda and an in-memory booking table."""

    def __init__(
        self,
        providers: Optional[list[Provider]] = None,
        start_day: Optional[date] = None,
        seed: int = SCHEDULE_SEED,
        slots: Optional[list[Slot]] = None,
    ) -> None:
        self._providers = list(PROVIDERS if providers is None else providers)
        if slots is not None:
            self._slots = {s.slot_id: s for s in slots}
        else:
            self._slots = _generate_slots(
                self._providers, start_day or date.today(), seed
            )
        self._bookings: dict[str, Booking] = {}

    def list_specialties(self) -> list[str]:
        return sorted({p.specialty for p in self._providers})

    def list_providers_by_specialty(self, specialty: str) -> list[Provider]:
        return sorted(
            (p for p in self._providers if p.specialty == specialty),
            key=lambda p: p.name,
        )

    def list_available_slots(self, provider_id: str) -> list[Slot]:
        return sorted(
            (s for s in self._slots.values() if s.provider_id == provider_id and s.available),
            key=lambda s: s.start,
        )

    def commit_booking(
        self,
        slot_id: str,
        patient_name: str,
        patient_phone: str,
        birth_date: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> str:
        """Book a slot and return the confirmation code.

        Raises:
            SlotUnavailableError: the slot does not exist or was already taken.
            BookingRejectedError: patient name or phone is missing.
        """
        missing = [
            name
            for name, value in (("patient_name", patient_name), ("patient_phone", patient_phone))
            if not value or not value.strip()
        ]
        if missing:
            raise BookingRejectedError(f"Missing required fields: {', '.join(missing)}")

        slot = self._slots.get(slot_id)
        if slot is None or not slot.available:
            raise SlotUnavailableError(f"Slot {slot_id} is no longer available")

        code = self._new_confirmation_code()
        self._slots[slot_id] = slot.model_copy(update={"available": False})
        self._bookings[code] = Booking(
            confirmation_code=code,
            slot_id=slot_id,
            provider_id=slot.provider_id,
            patient_name=patient_name,
            patient_phone=patient_phone,
            birth_date=birth_date,
            reason=reason,
            start=slot.start,
            created_at=datetime.now(timezone.utc),
        )
        logger.info("Booking created: %s for slot %s", code, slot_id)
        return code

    def get_booking(self, confirmation_code: str) -> Optional[Booking]:
        return self._bookings.get(confirmation_code)

    def _new_confirmation_code(self) -> str:
        while True:
            code = f"AGD{uuid.uuid4().int % 10**8:08d}"
            if code not in self._bookings:
                return code
