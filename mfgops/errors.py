# mfgops/errors.py
"""
Service-level exceptions.

Services raise these; the API layer maps each class to an HTTP status
(see ``main.py``). The message is what the caller gets to see.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class OrderNumberConflict(ConflictError):
    """Raised when no unique order number could be allocated after retrying."""
