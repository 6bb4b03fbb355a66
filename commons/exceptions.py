"""
Domain errors raised by the commons service modules.

Each error carries the HTTP status the JSON views answer with, so views can
translate any of them into {"error": message} in one place.
"""


class CommonsError(Exception):
    status = 400

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class PermissionDenied(CommonsError):
    status = 403


class NotFound(CommonsError):
    status = 404


class ValidationFailed(CommonsError):
    status = 400


class Conflict(CommonsError):
    status = 409


class QuotaExhausted(CommonsError):
    status = 403
