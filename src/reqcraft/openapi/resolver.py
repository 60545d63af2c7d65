"""Inline ``$ref`` JSON Reference pointers before OpenAPI conversion.

Most real specs describe request and response bodies as
``{"$ref": "#/components/schemas/Pet"}``. The adapter only understands inline
schemas, so :func:`resolve_refs` replaces every internal pointer with a copy
of its target first.

* Internal references (``#/...``) are followed, including RFC 6901 escaping.
* External references (other files, URLs) are left in place; the adapter
  then sees a schema without properties and produces no fields for it.
* A reference that is already being expanded further up the same branch is
  left in place, so self-referencing schemas (trees, linked lists) terminate.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from reqcraft.exceptions import OpenAPIError

logger = logging.getLogger(__name__)


def resolve_refs(spec: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of *spec* with internal ``$ref`` pointers inlined.

    Args:
        spec: The decoded OpenAPI document.

    Returns:
        A new dictionary; *spec* is not modified.

    Raises:
        OpenAPIError: If an internal ``$ref`` points to a missing location.

    Example::

        raw = load_openapi("petstore.yaml")
        resolved = resolve_refs(raw)
        # resolved["paths"]["/pets"]["get"]["responses"]["200"]["content"]
        # now holds the Pet schema itself.
    """
    root = copy.deepcopy(spec)
    return _deep_resolve(root, root, frozenset())


def _lookup(ref: str, root: dict[str, Any]) -> Any:
    """Follow the JSON Pointer *ref* (``#/a/b/0``) inside *root*.

    Raises:
        OpenAPIError: If a segment does not exist.
    """
    current: Any = root
    for raw_segment in ref[2:].split("/"):
        segment = raw_segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise OpenAPIError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise OpenAPIError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise OpenAPIError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )

    return current


def _deep_resolve(obj: Any, root: dict[str, Any], active: frozenset[str]) -> Any:
    """Recursively inline references within *obj*.

    *active* holds the references being expanded on the current branch;
    sibling branches each get their own set.
    """
    if isinstance(obj, dict):
        ref = obj.get("$ref")
        if isinstance(ref, str):
            if not ref.startswith("#/"):
                logger.debug("Leaving external $ref unresolved: %s", ref)
                return obj
            if ref in active:
                return obj
            return _deep_resolve(_lookup(ref, root), root, active | {ref})

        return {key: _deep_resolve(value, root, active) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_deep_resolve(item, root, active) for item in obj]

    return obj
