"""Failures raised by external collaborators (stores, scheduler, responder)."""


class CollaboratorError(Exception):
    """Base class for failures of a collaborator the core depends on."""


class StoreUnavailableError(CollaboratorError):
    """The transcript or catalog store could not be reached."""


class SlotUnavailableError(CollaboratorError):
    """The chosen slot was taken or removed before the booking was committed."""


class BookingRejectedError(CollaboratorError):
    """The scheduler refused a booking request."""


class ResponderError(CollaboratorError):
    """The free-text responder failed to produce an answer."""


class DocumentExtractionError(CollaboratorError):
    """No text could be extracted from an uploaded document."""
