"""Exceptions raised by the recommendation core and mapped to HTTP errors in app.py."""


class MovieMatchError(Exception):
    """Base class for every error this application raises on purpose."""


class InvalidInput(MovieMatchError, ValueError):
    """The caller supplied empty or otherwise unusable input. Never retried."""


class ServiceError(MovieMatchError):
    """The embedding service failed or answered with something we cannot parse."""


class NotFound(MovieMatchError, LookupError):
    """A referenced movie or user does not exist."""
