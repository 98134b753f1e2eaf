from clinic_assistant.tools.authorization import AuthorizationService
from clinic_assistant.tools.catalog import InMemoryProcedureCatalog
from clinic_assistant.tools.documents import PlainTextExtractor
from clinic_assistant.tools.errors import (
    BookingRejectedError,
    CollaboratorError,
    DocumentExtractionError,
    ResponderError,
    SlotUnavailableError,
    StoreUnavailableError,
)
from clinic_assistant.tools.responder import FaqResponder, OpenAIResponder, build_responder
from clinic_assistant.tools.scheduling import InMemoryScheduler
from clinic_assistant.tools.transcripts import InMemoryTranscriptStore

__all__ = [
    "AuthorizationService",
    "InMemoryProcedureCatalog",
    "PlainTextExtractor",
    "InMemoryScheduler",
    "InMemoryTranscriptStore",
    "FaqResponder",
    "OpenAIResponder",
    "build_responder",
    "CollaboratorError",
    "StoreUnavailableError",
    "SlotUnavailableError",
    "BookingRejectedError",
    "ResponderError",
    "DocumentExtractionError",
]
