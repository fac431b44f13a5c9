from __future__ import annotations


class RegistryError(Exception):
    """Base class for the four registry error kinds."""

    status_code = 500
    code = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class Unauthorized(RegistryError):
    status_code = 403
    code = "unauthorized"


class NotFound(RegistryError):
    status_code = 404
    code = "not_found"


class Conflict(RegistryError):
    status_code = 409
    code = "conflict"


class InvalidState(RegistryError):
    status_code = 400
    code = "invalid_state"
