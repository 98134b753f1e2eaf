"""
Patient data parsing for the booking wizard.

The caller sends ``Name, Phone[, Birth date[, Reason]]`` in one message.
Each field is validated on its own so the corrective reply can name the
field that failed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from clinic_assistant.utils import normalize_phone

logger = logging.getLogger(__name__)

# Validation thresholds
MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 13
BIRTH_DATE_FORMAT = "%d/%m/%Y"


def _validate_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH


def _validate_phone(value: str) -> bool:
    digits = normalize_phone(value).lstrip("+")
    return MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS


def _validate_birth_date(value: str) -> bool:
    """Validate date is in DD/MM/YYYY format."""
    try:
        datetime.strptime(value.strip(), BIRTH_DATE_FORMAT)
        return True
    except ValueError:
        return False


@dataclass(frozen=True)
class PatientData:
    name: str
    phone: str
    birth_date: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class PatientDataError:
    """Caller-facing explanation of why the patient data was rejected."""
    message: str


def parse_patient_data(text: str) -> Union[PatientData, PatientDataError]:
    """Split and validate a comma-separated patient data message.

    Extra commas are kept in the reason field.
    """
    parts = [p.strip() for p in text.split(",", 3)]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return PatientDataError("Please send at least your name and phone, separated by a comma.")

    name, phone = parts[0], parts[1]
    birth_date = parts[2] if len(parts) > 2 and parts[2] else None
    reason = parts[3] if len(parts) > 3 and parts[3] else None

    if not _validate_name(name):
        logger.debug("Patient name rejected: '%s'", name)
        return PatientDataError(f"The name must have at least {MIN_NAME_LENGTH} characters.")
    if not _validate_phone(phone):
        logger.debug("Patient phone rejected: '%s'", phone)
        return PatientDataError(
            f"The phone '{phone}' doesn't look right. Use the area code and "
            f"{MIN_PHONE_DIGITS} to {MAX_PHONE_DIGITS} digits."
        )
    if birth_date is not None and not _validate_birth_date(birth_date):
        logger.debug("Birth date rejected: '%s'", birth_date)
        return PatientDataError(f"The birth date '{birth_date}' must use the DD/MM/YYYY format.")

    return PatientData(
        name=name,
        phone=normalize_phone(phone),
        birth_date=birth_date,
        reason=reason,
    )
