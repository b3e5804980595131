"""Exception hierarchy for apiwrap.

All exceptions inherit from :class:`ApiwrapError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apiwrap.exit_codes`.
The command line entry point in :func:`apiwrap.app.main` catches
``ApiwrapError`` and exits with the appropriate code.

The core generator only ever raises :class:`ConfigError` (at setup time),
:class:`InterpolationError` and :class:`ArgumentError` (at call time, before
any primitive runs).  Errors raised by primitives are never wrapped.

Subclass hierarchy::

    ApiwrapError (exit 1)
    +-- ArgumentError       (exit 2)
    +-- ConfigError         (exit 3)
    +-- InterpolationError  (exit 4)
    +-- DefinitionError     (exit 5)
    +-- HTTPError           (exit 6)
        +-- AuthError
        +-- NotFoundError
        +-- ServerError
        +-- ConnectionError_
"""

from __future__ import annotations

from typing import Optional

from apiwrap.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_DEFINITION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_INTERPOLATION_ERROR,
    EXIT_INVALID_USAGE,
)


class ApiwrapError(Exception):
    """Base exception for all apiwrap errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ArgumentError(ApiwrapError, TypeError):
    """Raised when on-the-fly request parameters are not keyword/value pairs."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ApiwrapError):
    """Raised for malformed backend registrations and resource definitions."""

    exit_code = EXIT_CONFIG_ERROR


class InterpolationError(ApiwrapError, LookupError):
    """Raised when a path token cannot be resolved against the call's objects.

    Attributes:
        token: The token as written in the template, without the leading
            colon (e.g. ``"owner.login"``).
        segment: The first segment of *token* that could not be resolved
            (e.g. ``"login"``).
        key_path: The dotted path up to and including *segment*
            (e.g. ``"owner.login"`` when ``owner`` resolved but ``login``
            did not).
        template: The template being resolved, when known.
    """

    exit_code = EXIT_INTERPOLATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        token: str = "",
        segment: str = "",
        key_path: str = "",
        template: Optional[str] = None,
    ):
        super().__init__(message)
        self.token = token
        self.segment = segment
        self.key_path = key_path
        self.template = template


class DefinitionError(ApiwrapError):
    """Raised when a resource table cannot be loaded or fails validation."""

    exit_code = EXIT_DEFINITION_ERROR


class HTTPError(ApiwrapError):
    """Base class for errors raised by :mod:`apiwrap.client` primitives.

    Attributes:
        status_code: The HTTP status code, or ``None`` for network failures.
    """

    exit_code = EXIT_HTTP_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(HTTPError):
    """Raised when the API rejects the credentials (HTTP 401 / 403)."""


class NotFoundError(HTTPError):
    """Raised when the API returns HTTP 404."""


class ServerError(HTTPError):
    """Raised for HTTP 5xx responses and any other unexpected error status."""


class ConnectionError_(HTTPError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """
