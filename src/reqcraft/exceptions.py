"""Exception hierarchy for reqcraft.

All exceptions inherit from :class:`ReqcraftError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`reqcraft.exit_codes`.
The top-level error handler in :func:`reqcraft.app.main` catches
``ReqcraftError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ReqcraftError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- DocumentReadError        (exit 3)
    +-- DslParseError            (exit 4)
    |   +-- UnexpectedTokenError (exit 4)
    +-- OpenAPIError             (exit 5)
    +-- ConfigError              (exit 1)
"""

from __future__ import annotations

from reqcraft.exit_codes import (
    EXIT_DOCUMENT_READ_ERROR,
    EXIT_DSL_PARSE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_OPENAPI_ERROR,
)


class ReqcraftError(Exception):
    """Base exception for all reqcraft errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`reqcraft.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ReqcraftError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class DocumentReadError(ReqcraftError):
    """Raised when a ``.rqc`` document cannot be read from disk."""

    exit_code = EXIT_DOCUMENT_READ_ERROR


class DslParseError(ReqcraftError):
    """Raised when a DSL document cannot be parsed."""

    exit_code = EXIT_DSL_PARSE_ERROR


class UnexpectedTokenError(DslParseError):
    """Raised by the parser when a required token kind is missing.

    Parsing of the whole document stops at the first mismatch; no partial
    result is returned.

    Args:
        expected: Name of the token kind the parser required.
        got: Name of the token kind actually found.
        line: 1-based source line of the offending token.
    """

    def __init__(self, expected: str, got: str, line: int):
        super().__init__(f"Line {line}: expected {expected}, got {got}")
        self.expected = expected
        self.got = got
        self.line = line


class OpenAPIError(ReqcraftError):
    """Raised when an OpenAPI source cannot be fetched, read, or decoded."""

    exit_code = EXIT_OPENAPI_ERROR


class ConfigError(ReqcraftError):
    """Raised for configuration problems (invalid ``reqcraft.json``, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE
