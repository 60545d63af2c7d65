"""OpenAPI import -- load, resolve ``$ref`` pointers, and convert to a Document.

This sub-package lets ``.rqc`` files ``import`` OpenAPI 3.x specs (JSON or
YAML, local file or remote URL) and turns them into the same
:class:`~reqcraft.models.Document` model the DSL parser produces.

Typical usage::

    from reqcraft.openapi import parse_openapi_url

    document = parse_openapi_url("https://petstore3.swagger.io/api/v3/openapi.json")

Sub-modules:

* :mod:`~reqcraft.openapi.loader` -- I/O layer (URL, file) plus format
  detection.
* :mod:`~reqcraft.openapi.resolver` -- Internal ``$ref`` inlining with
  cycle detection.
* :mod:`~reqcraft.openapi.adapter` -- Maps servers, paths, parameters and
  schemas onto the reqcraft model.
"""

from reqcraft.openapi.adapter import (
    openapi_to_document,
    parse_openapi_content,
    parse_openapi_file,
    parse_openapi_url,
)
from reqcraft.openapi.loader import is_url, load_openapi

__all__ = [
    "is_url",
    "load_openapi",
    "openapi_to_document",
    "parse_openapi_content",
    "parse_openapi_file",
    "parse_openapi_url",
]
