"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~reqcraft.exceptions.ReqcraftError` subclass.
Editor integrations and CI scripts can inspect the exit code of
``reqcraft check`` to tell a missing file from a syntax error without
parsing stderr.

Example::

    $ reqcraft check
    $ echo $?
    4   # EXIT_DSL_PARSE_ERROR -- the root .rqc file has a syntax error
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_DOCUMENT_READ_ERROR = 3
"""A DSL document could not be read from disk."""

EXIT_DSL_PARSE_ERROR = 4
"""A DSL document contains a syntax error."""

EXIT_OPENAPI_ERROR = 5
"""An OpenAPI source could not be fetched, read, or decoded."""
