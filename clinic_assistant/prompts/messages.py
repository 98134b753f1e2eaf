"""
Caller-facing reply texts.

Each prompt that opens a dialog step contains that step's marker phrase.
The session reconstructor relies on these markers to classify legacy
transcripts, so a marker must appear in exactly one step's prompts.
"""

from datetime import date
from typing import Optional

from clinic_assistant.config import settings
from clinic_assistant.schemas.catalog_schema import AuthorizationOutcome
from clinic_assistant.schemas.scheduling_schema import Provider, Slot

_clinic = settings.clinic
_reset = settings.session.reset_token

# Step markers
MENU_MARKER = "Choose an option"
FREE_QA_MARKERS = ("Question assistant", "Ask another question")
AUTHORIZATION_MARKERS = ("Exam authorization", "Upload another referral")
SPECIALTY_MARKER = "Available specialties"
PROVIDER_MARKER = "Available doctors"
SLOT_MARKER = "Available times"
PATIENT_DATA_MARKER = "Patient details"
CONFIRM_MARKER = "confirm the appointment"
FOOTER_MARKER = "return to the main menu"

FOOTER = f"---\nType {_reset} at any time to {FOOTER_MARKER}."


def with_footer(message: str) -> str:
    return f"{message}\n\n{FOOTER}"


def main_menu() -> str:
    return with_footer(
        f"Welcome to the {_clinic.name} digital service\n\n"
        f"{MENU_MARKER}:\n\n"
        "1 - Ask a question\n"
        "2 - Book an appointment\n"
        "3 - Check authorization for an exam\n\n"
        "Type the number of the desired option."
    )


def invalid_menu_option() -> str:
    return f"Invalid option. Type 1, 2 or 3.\n\n{main_menu()}"


def free_qa_intro() -> str:
    return with_footer(
        f"{FREE_QA_MARKERS[0]}\n\n"
        "How can I help? Ask anything about our services, procedures or exams."
    )


def free_qa_answer(answer: str) -> str:
    return f"{answer}\n\n{FREE_QA_MARKERS[1]}, or type {_reset} to {FOOTER_MARKER}."


def authorization_intro() -> str:
    return with_footer(
        f"{AUTHORIZATION_MARKERS[0]}\n\n"
        "Upload your referral document (PDF or image) and I will identify the "
        "procedure and its audit period."
    )


def authorization_missing_document() -> str:
    return with_footer(
        f"{AUTHORIZATION_MARKERS[0]}\n\n"
        "I need the referral document itself. Please upload it as a file."
    )


def authorization_unreadable() -> str:
    return with_footer(
        f"{AUTHORIZATION_MARKERS[0]}\n\n"
        "I could not read any text from that document. Check that the file is "
        f"legible and try again. {AUTHORIZATION_MARKERS[1]} when ready."
    )


def authorization_no_match() -> str:
    return with_footer(
        f"{AUTHORIZATION_MARKERS[0]}\n\n"
        "I could not identify any procedure in this document.\n"
        "Make sure the procedure name is legible and the page is not cropped, "
        f"or call us at {_clinic.phone}.\n\n"
        f"{AUTHORIZATION_MARKERS[1]} to try again."
    )


def authorization_result(outcome: AuthorizationOutcome) -> str:
    lines = [
        f"{AUTHORIZATION_MARKERS[0]}",
        "",
        f"Procedure identified: {outcome.procedure}",
        f"Audit: {outcome.audit_label}",
    ]
    if not outcome.requires_audit:
        lines.append("No audit is required: the procedure is already approved.")
    elif outcome.response_date is not None:
        lines.append(f"Expected response by: {format_long_date(outcome.response_date)}")
    lines += ["", f"{AUTHORIZATION_MARKERS[1]} to check another procedure."]
    return with_footer("\n".join(lines))


def format_long_date(value: date) -> str:
    return f"{value:%A}, {value.day} {value:%B %Y}"


def _numbered(items: list[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def invalid_choice(size: int) -> str:
    return f"Invalid option. Type a number between 1 and {size}."


def specialty_prompt(specialties: list[str], notice: Optional[str] = None) -> str:
    body = (
        "Book an appointment\n\n"
        f"{SPECIALTY_MARKER}:\n\n{_numbered(specialties)}\n\n"
        "Type the number of the desired specialty."
    )
    return with_footer(f"{notice}\n\n{body}" if notice else body)


def no_specialties() -> str:
    return f"There are no specialties available at the moment.\n\n{main_menu()}"


def no_providers_notice(specialty: str) -> str:
    return f"There are no doctors for {specialty} at the moment."


def no_providers_left(specialty: str) -> str:
    return f"{no_providers_notice(specialty)}\n\n{main_menu()}"


def provider_prompt(
    specialty: str, providers: list[Provider], notice: Optional[str] = None
) -> str:
    entries = [f"{p.display_name} - {p.city}" for p in providers]
    body = (
        f"{specialty}\n\n"
        f"{PROVIDER_MARKER}:\n\n{_numbered(entries)}\n\n"
        "Type the number of the desired doctor."
    )
    return with_footer(f"{notice}\n\n{body}" if notice else body)


def no_slots_notice(provider_name: str) -> str:
    return f"Dr(a). {provider_name} has no open times at the moment."


def slot_prompt(provider_name: str, slots: list[Slot], notice: Optional[str] = None) -> str:
    body = (
        f"Dr(a). {provider_name}\n\n"
        f"{SLOT_MARKER}:\n\n{_numbered([s.label for s in slots])}\n\n"
        "Type the number of the desired time."
    )
    return with_footer(f"{notice}\n\n{body}" if notice else body)


def patient_data_prompt(notice: Optional[str] = None) -> str:
    body = (
        f"{PATIENT_DATA_MARKER}\n\n"
        "Send your details separated by commas:\n"
        "Name, Phone, Birth date (DD/MM/YYYY, optional), Reason (optional)\n\n"
        "Example: Maria Silva, (11) 99999-9999, 01/01/1990, Routine check-up"
    )
    return with_footer(f"{notice}\n\n{body}" if notice else body)


def confirmation_prompt(
    specialty: str,
    provider_name: str,
    slot_label: str,
    patient_name: str,
    patient_phone: str,
    birth_date: Optional[str] = None,
    reason: Optional[str] = None,
    notice: Optional[str] = None,
) -> str:
    lines = [
        "Appointment summary",
        "",
        f"Doctor: Dr(a). {provider_name}",
        f"Specialty: {specialty}",
        f"Date/time: {slot_label}",
        f"Patient: {patient_name}",
        f"Phone: {patient_phone}",
    ]
    if birth_date:
        lines.append(f"Birth date: {birth_date}")
    if reason:
        lines.append(f"Reason: {reason}")
    lines += ["", f"Type CONFIRM to {CONFIRM_MARKER} or CANCEL to discard it."]
    body = "\n".join(lines)
    return with_footer(f"{notice}\n\n{body}" if notice else body)


def confirm_or_cancel() -> str:
    return "Please type CONFIRM or CANCEL."


def booking_success(
    confirmation_code: str, provider_name: str, slot_label: str, patient_name: str
) -> str:
    return (
        "Appointment booked!\n\n"
        f"Confirmation code: {confirmation_code}\n"
        f"Doctor: Dr(a). {provider_name}\n"
        f"Date/time: {slot_label}\n"
        f"Patient: {patient_name}\n\n"
        "Keep the confirmation code for future reference.\n\n"
        f"{main_menu()}"
    )


def booking_cancelled() -> str:
    return f"Appointment discarded.\n\n{main_menu()}"


def apology() -> str:
    return f"Sorry, something went wrong on our side. Please try again.\n\n{main_menu()}"


def institutional_context() -> str:
    """System prompt for the free-text responder."""
    return (
        f"You are the virtual assistant of {_clinic.name}, a medical clinic.\n"
        "You help patients with questions about services, procedures, exams, "
        "insurance and exam authorizations.\n\n"
        f"Opening hours: {_clinic.hours}.\n"
        f"Units: {_clinic.locations}.\n"
        f"Phone: {_clinic.phone}. Email: {_clinic.email}.\n\n"
        "RULES:\n"
        "- Be empathetic and professional, and use clear language.\n"
        "- Never give a medical diagnosis; offer general guidance only.\n"
        "- If you do not know something specific, direct the patient to contact the clinic.\n"
        "- Appointments are booked through option 2 of the main menu and exam "
        "authorizations are checked through option 3."
    )
