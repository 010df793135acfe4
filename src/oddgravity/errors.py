"""
errors.py: Exception types raised across the package.
"""


class OddGravityError(Exception):
    """Base class for every error this package raises on purpose."""


class PersistenceError(OddGravityError):
    """The local store could not be read or written."""


class ApiError(OddGravityError):
    """A request to the daily/score backend failed or returned an error."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status
