"""Load OpenAPI documents from a URL or a local file.

This module handles all I/O for OpenAPI imports and converts the raw text
into a Python dictionary. It supports both JSON and YAML with format
detection:

* local files -- by extension (``.json``, ``.yaml``, ``.yml``);
* URLs -- by ``Content-Type`` header, falling back to the URL suffix;
* anything else -- JSON first, then YAML.

The public functions are:

* :func:`load_openapi` -- Load and decode a spec from any supported source.
* :func:`decode_openapi` -- Decode already-fetched text with a format hint.

After loading, the raw dict is handed to
:func:`~reqcraft.openapi.adapter.openapi_to_document`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx
import yaml

from reqcraft.exceptions import OpenAPIError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def is_url(source: str) -> bool:
    """Return ``True`` for ``http://`` and ``https://`` references."""
    return source.startswith(("http://", "https://"))


def load_openapi(source: str | Path, timeout: float = DEFAULT_TIMEOUT) -> dict[str, Any]:
    """Load an OpenAPI spec from a URL or file path.

    Args:
        source: An ``http(s)`` URL or a local file path.
        timeout: Network timeout in seconds for URL sources.

    Returns:
        The decoded spec as a dictionary.

    Raises:
        OpenAPIError: If the source cannot be loaded or decoded.
    """
    if isinstance(source, str) and is_url(source):
        return _load_from_url(source, timeout)
    return _load_from_file(Path(source))


def _format_from_suffix(suffix: str) -> str:
    """Map a file or URL suffix to a format hint (``""`` when unknown)."""
    suffix = suffix.lower().lstrip(".")
    if suffix == "json":
        return "json"
    if suffix in ("yaml", "yml"):
        return "yaml"
    return ""


def _load_from_url(url: str, timeout: float) -> dict[str, Any]:
    """Fetch a spec over HTTP(S).

    Args:
        url: The HTTP(S) URL to fetch.
        timeout: Network timeout in seconds.

    Returns:
        The decoded spec dictionary.

    Raises:
        OpenAPIError: On a non-success status, a transport error, or
            undecodable content.
    """
    logger.debug("Fetching OpenAPI spec from %s", url)
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise OpenAPIError(
            f"HTTP {exc.response.status_code} fetching OpenAPI spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise OpenAPIError(f"Failed to fetch OpenAPI spec from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    if "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    elif "json" in content_type:
        hint = "json"
    else:
        hint = _format_from_suffix(Path(urlparse(url).path).suffix)

    return decode_openapi(response.text, hint=hint)


def _load_from_file(path: Path) -> dict[str, Any]:
    """Load a spec from a local file.

    Args:
        path: Path to the local file.

    Returns:
        The decoded spec dictionary.

    Raises:
        OpenAPIError: If the file is missing, unreadable, empty, or
            undecodable.
    """
    if not path.is_file():
        raise OpenAPIError(f"OpenAPI file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise OpenAPIError(f"Failed to read OpenAPI file {path}: {exc}") from exc

    if not content.strip():
        raise OpenAPIError(f"OpenAPI file is empty: {path}")

    return decode_openapi(content, hint=_format_from_suffix(path.suffix))


def decode_openapi(content: str, hint: str = "") -> dict[str, Any]:
    """Decode *content* as JSON or YAML.

    A ``"json"`` hint decodes JSON only and a ``"yaml"`` hint YAML only.
    Without a hint, JSON is tried first (it is stricter and faster) and
    YAML second.

    Args:
        content: The raw text.
        hint: Optional format hint (``"json"`` or ``"yaml"``).

    Returns:
        The decoded dictionary.

    Raises:
        OpenAPIError: If the content cannot be decoded or is not an object.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise OpenAPIError(f"Invalid JSON: {exc}") from exc
            json_error = exc
        else:
            return _require_object(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to decode OpenAPI spec as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise OpenAPIError(msg) from exc

    return _require_object(result)


def _require_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise OpenAPIError(f"OpenAPI spec must be a JSON/YAML object (got {kind})")
    return result
