"""Error kinds raised by stores, services and request parsing.

Every ``ServiceError`` is caught at the handler boundary and shaped into a
response envelope; its text becomes the envelope's ``debug`` member.
"""

ENTITY_TOO_LARGE = "entity.too.large"
ENTITY_PARSE_FAILED = "entity.parse.failed"


class ServiceError(Exception):
    """Base class for errors raised by services and stores."""


class ValidationError(ServiceError):
    """A required field is missing or a value does not fit its column."""


class NotFoundError(ServiceError):
    """No record matched the identifier or lookup."""


class PersistenceError(ServiceError):
    """The database rejected an operation."""


class AuthenticationError(ServiceError):
    """Credentials did not match or the authentication gate rejected."""


class RequestError(Exception):
    """The request body could not be accepted.

    ``type`` names the failure kind (``entity.too.large``,
    ``entity.parse.failed``) so the error handler can decide whether to
    answer it or let it propagate.
    """

    def __init__(self, type: str, message: str) -> None:
        super().__init__(message)
        self.type = type
        self.message = message
