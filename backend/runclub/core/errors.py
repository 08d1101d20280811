"""Error taxonomy shared by the normalizers, stores and HTTP layer.

Every error carries the HTTP status it maps to so the API layer can turn it
into a response without a lookup table. Validation errors (bad input) and
``StorageError`` (we could not save it) are kept in separate branches.
"""
from __future__ import annotations


class RunClubError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(RunClubError):
    status_code = 400


class MissingField(ValidationFailed):
    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class InvalidDateFormat(ValidationFailed):
    def __init__(self, value=None):
        super().__init__(
            "Invalid date format. Please use YYYY-MM-DD or an ISO 8601 timestamp"
        )
        self.value = value


class InvalidTimeFormat(ValidationFailed):
    def __init__(self, value=None, message: str | None = None):
        super().__init__(
            message
            or "Invalid time format. Please use HH:MM format (e.g., 06:00, 14:30)"
        )
        self.value = value


class NonexistentLocalTime(InvalidTimeFormat):
    """Wall-clock time falls in the hour skipped by a spring-forward shift."""

    def __init__(self, wall: str, tz_name: str):
        super().__init__(
            wall, f"{wall} does not exist in {tz_name} (skipped by daylight saving time)"
        )
        self.tz_name = tz_name


class InvalidPaceFormat(ValidationFailed):
    def __init__(self, value=None):
        super().__init__(
            'Invalid pace format. Please use format like "8:30/mile" or "5:15/km"'
        )
        self.value = value


class InvalidRSVP(ValidationFailed):
    pass


class DuplicateUsername(RunClubError):
    status_code = 409

    def __init__(self, username: str):
        super().__init__(f"Username '{username}' is already taken")
        self.username = username


class NotFound(RunClubError):
    status_code = 404

    def __init__(self, what: str, ident: str | None = None):
        super().__init__(f"{what} not found")
        self.what = what
        self.ident = ident


class StorageError(RunClubError):
    status_code = 503
