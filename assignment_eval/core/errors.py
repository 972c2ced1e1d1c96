# assignment_eval/core/errors.py
"""
Domain errors raised by the service layer.

Services check permissions and state before touching the database, so any of
these errors means nothing was written. The API layer turns them into the
``{"success": false, "error": ...}`` envelope using ``status_code``.
"""
from fastapi import status


class LifecycleError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LifecycleError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDenied(LifecycleError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(LifecycleError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateTransition(LifecycleError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(LifecycleError):
    status_code = status.HTTP_409_CONFLICT


class EngineFailure(LifecycleError):
    status_code = status.HTTP_502_BAD_GATEWAY
