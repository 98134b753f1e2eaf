from clinic_assistant.conversation.orchestrator import Orchestrator
from clinic_assistant.conversation.reconstructor import is_chrome_turn, reconstruct_step
from clinic_assistant.conversation.state_machine import (
    DialogStateMachine,
    InvalidTransitionError,
    TransitionTrigger,
)
from clinic_assistant.conversation.workflow import StepResult, WorkflowEngine

__all__ = [
    "Orchestrator",
    "WorkflowEngine",
    "StepResult",
    "DialogStateMachine",
    "TransitionTrigger",
    "InvalidTransitionError",
    "reconstruct_step",
    "is_chrome_turn",
]
