# saferoute/errors.py
from typing import Optional


class SafeRouteError(Exception):
    """Base class for errors surfaced to the UI / API layer."""


class PermissionDenied(SafeRouteError):
    """Location permission was refused."""


class DecodeError(SafeRouteError):
    """Encoded polyline is malformed."""


class RouteFetchError(SafeRouteError):
    """Directions provider could not be reached or answered with a non-OK status."""

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status


class IndexOutOfRange(SafeRouteError, IndexError):
    pass


class HazardParseError(SafeRouteError, ValueError):
    """A hazard record is missing fields or carries an unusable severity."""


class ReportError(SafeRouteError):
    pass


class AlertError(SafeRouteError):
    pass
