"""
Error taxonomy for the social core.

Core modules raise these; SocialErrorMiddleware maps them to JSON responses
using each class's status_code.
"""


class SocialError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(SocialError):
    status_code = 401
    default_message = "Not authenticated"


class NotFound(SocialError):
    status_code = 404
    default_message = "Not found"


class InvalidOperation(SocialError):
    status_code = 400
    default_message = "Operation not allowed"


class AlreadyExists(InvalidOperation):
    default_message = "Already exists"


class ValidationError(SocialError):
    status_code = 400
    default_message = "Invalid request"


class InternalError(SocialError):
    status_code = 500
    default_message = "Internal error"
