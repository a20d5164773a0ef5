"""Typed failures raised by the domain services.

Every error carries a stable ``code`` (the failure name), a ``kind`` (the
taxonomy bucket the transport layer maps to a status) and free-form details
such as the offending field or the current and limit values.
"""


class DomainError(Exception):
    """Base class for every domain rule violation."""

    code = "DomainError"
    kind = "Error"
    status_code = 400
    default_message = "Request could not be completed."

    def __init__(self, message=None, **details):
        """Initialize the error."""
        self.message = message or self.default_message
        self.details = {key: value for key, value in details.items() if value is not None}
        super().__init__(self.message)

    def to_dict(self):
        payload = {"error": self.code, "kind": self.kind, "message": self.message}
        payload.update(self.details)
        return payload


class NotFound(DomainError):
    code = "NotFound"
    kind = "NotFound"
    status_code = 404
    default_message = "Resource not found."


class Unauthorized(DomainError):
    code = "Unauthorized"
    kind = "Unauthorized"
    status_code = 401
    default_message = "Authentication required."


class Forbidden(DomainError):
    code = "Forbidden"
    kind = "Forbidden"
    status_code = 403
    default_message = "You are not allowed to perform this action."


class ValidationError(DomainError):
    """Raised when a field fails a constraint check."""

    code = "ValidationError"
    kind = "ValidationError"
    status_code = 400
    default_message = "Validation failed."

    def __init__(self, message=None, field=None, **details):
        """Initialize the error."""
        super().__init__(message, field=field, **details)
        self.field = field


class InvalidRating(ValidationError):
    code = "InvalidRating"
    default_message = "Rating must be an integer between 1 and 5."


class Conflict(DomainError):
    """Raised when the request is incompatible with the aggregate's state."""

    code = "Conflict"
    kind = "Conflict"
    status_code = 409
    default_message = "Request conflicts with the current state."


class AlreadyMember(Conflict):
    code = "AlreadyMember"
    default_message = "You are already a member of this club."


class NotAMember(Conflict):
    code = "NotAMember"
    default_message = "You are not a member of this club."


class ClubFull(Conflict):
    code = "ClubFull"
    default_message = "Club has reached maximum member capacity."


class RequestAlreadyPending(Conflict):
    code = "RequestAlreadyPending"
    default_message = "Join request already pending approval."


class EventInPast(Conflict):
    code = "EventInPast"
    default_message = "Cannot RSVP to past events."


class RegistrationClosed(Conflict):
    code = "RegistrationClosed"
    default_message = "Registration is closed for this event."


class MembersOnly(Conflict):
    code = "MembersOnly"
    default_message = "This event is only for club members."


class DuplicateFeedback(Conflict):
    code = "DuplicateFeedback"
    default_message = "You have already provided feedback for this event."


class EventNotCompleted(Conflict):
    code = "EventNotCompleted"
    default_message = "Cannot provide feedback for future events."


class DuplicateName(Conflict):
    code = "DuplicateName"
    default_message = "Club with this name already exists."


class TooManyAttempts(DomainError):
    code = "TooManyAttempts"
    kind = "TooManyAttempts"
    status_code = 429
    default_message = "Too many login attempts. Try again later."
