"""
Errors the services raise and the app factory maps onto JSON responses.
"""
from __future__ import annotations


class RegistrationError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RegistrationError):
    """Malformed client input. `message` is the joined field errors."""

    status_code = 400
    default_message = "Invalid input"


class DuplicateError(RegistrationError):
    status_code = 409
    default_message = "Already registered recently."


class Unauthorized(RegistrationError):
    status_code = 401
    default_message = "Not logged in"


class RateLimited(RegistrationError):
    status_code = 429
    default_message = "Too many requests, please try again later."


class InternalError(RegistrationError):
    # Never carries internal detail to the client.
    status_code = 500
    default_message = "Server error"
