"""Dialog step identifiers and the per-step dialog state variants.

Each variant carries only the fields that are legal at its step, so a
booking cannot reach confirmation without every required patient field.
The union is discriminated on ``step`` and persisted with the session.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class DialogStep(str, Enum):
    """Every step of the dialog tree."""

    MENU = "menu"
    FREE_QA = "free_qa"
    AUTHORIZATION = "authorization"
    SPECIALTY = "wizard_specialty"
    PROVIDER = "wizard_provider"
    SLOT = "wizard_slot"
    PATIENT_DATA = "wizard_patient_data"
    CONFIRM = "wizard_confirm"


WIZARD_STEPS: tuple[DialogStep, ...] = (
    DialogStep.SPECIALTY,
    DialogStep.PROVIDER,
    DialogStep.SLOT,
    DialogStep.PATIENT_DATA,
    DialogStep.CONFIRM,
)


class _StepState(BaseModel):
    model_config = ConfigDict(frozen=True)


class MenuState(_StepState):
    step: Literal[DialogStep.MENU] = DialogStep.MENU


class FreeQAState(_StepState):
    step: Literal[DialogStep.FREE_QA] = DialogStep.FREE_QA


class AuthorizationState(_StepState):
    step: Literal[DialogStep.AUTHORIZATION] = DialogStep.AUTHORIZATION


class SpecialtyStep(_StepState):
    step: Literal[DialogStep.SPECIALTY] = DialogStep.SPECIALTY


class ProviderStep(_StepState):
    step: Literal[DialogStep.PROVIDER] = DialogStep.PROVIDER
    specialty: RequiredText


class SlotStep(_StepState):
    step: Literal[DialogStep.SLOT] = DialogStep.SLOT
    specialty: RequiredText
    provider_id: RequiredText
    provider_name: RequiredText


class PatientDataStep(_StepState):
    step: Literal[DialogStep.PATIENT_DATA] = DialogStep.PATIENT_DATA
    specialty: RequiredText
    provider_id: RequiredText
    provider_name: RequiredText
    slot_id: RequiredText
    slot_label: RequiredText


class ConfirmStep(_StepState):
    step: Literal[DialogStep.CONFIRM] = DialogStep.CONFIRM
    specialty: RequiredText
    provider_id: RequiredText
    provider_name: RequiredText
    slot_id: RequiredText
    slot_label: RequiredText
    patient_name: RequiredText
    patient_phone: RequiredText
    birth_date: Optional[str] = None
    reason: Optional[str] = None


DialogState = Annotated[
    Union[
        MenuState,
        FreeQAState,
        AuthorizationState,
        SpecialtyStep,
        ProviderStep,
        SlotStep,
        PatientDataStep,
        ConfirmStep,
    ],
    Field(discriminator="step"),
]


def wizard_fields(state: BaseModel) -> dict[str, Optional[str]]:
    """Return the booking data captured so far by a dialog state."""
    return state.model_dump(exclude={"step"})
