"""
Error taxonomy shared by the data access layer and the HTTP layer.
"""


class CatalogError(Exception):
    """Base class for expected, request-terminating failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(CatalogError):
    """A required field is missing or the payload cannot be read."""

    status_code = 400


class UnauthorizedError(CatalogError):
    """Credentials did not match a stored user."""

    status_code = 401


class NotFoundError(CatalogError):
    """No record matched the given identifier or key."""

    status_code = 404


class ConflictError(CatalogError):
    """A record with the same unique field already exists."""

    status_code = 409


def status_for(exc: Exception) -> int:
    """Map an exception to the HTTP status it should produce."""
    if isinstance(exc, CatalogError):
        return exc.status_code
    return 500
