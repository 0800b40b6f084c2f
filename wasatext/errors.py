# wasatext/errors.py
"""
Error kinds raised by the service layer.

Each kind carries the HTTP status it maps to at the API boundary; the
services themselves never build responses.
"""
from fastapi import status


class ServiceError(Exception):
    """Base class for all errors raised by services"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """A referenced user, conversation, message or reaction does not exist"""
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedError(ServiceError):
    """The caller is not a participant or owner required for the operation"""
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(ServiceError):
    """The operation collides with existing state"""
    status_code = status.HTTP_409_CONFLICT


class InvalidInputError(ServiceError):
    """Malformed or inconsistent input"""
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(ServiceError):
    """Storage failure not attributable to caller input"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
