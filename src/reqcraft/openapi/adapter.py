"""Convert OpenAPI documents into reqcraft :class:`~reqcraft.models.Document` trees.

The adapter lets an ``import`` statement pull an OpenAPI 3.x spec into a
``.rqc`` configuration. It walks a ``$ref``-resolved spec and maps it onto
the same model the DSL parser produces:

* the first ``servers[].url`` becomes the only base URL;
* each path becomes an :class:`~reqcraft.models.ApiBlock`, each operation a
  :class:`~reqcraft.models.MethodBlock`;
* query and path parameters become request fields flagged ``is_params``,
  followed by the fields of the JSON request body;
* the JSON body of the ``200``, ``201`` or ``default`` response becomes the
  response schema;
* paths are grouped by their first tag into ``openapi-<tag>`` categories,
  sorted by tag name, under one top-level ``openapi`` category that also
  holds the untagged paths.

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values.

The conversion is pure: the same spec always yields the same document.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from reqcraft.exceptions import OpenAPIError
from reqcraft.models import (
    ApiBlock,
    CategoryBlock,
    ConfigBlock,
    Document,
    FieldType,
    MethodBlock,
    MockValue,
    SchemaBlock,
    SchemaField,
)
from reqcraft.openapi.loader import DEFAULT_TIMEOUT, decode_openapi, load_openapi
from reqcraft.openapi.resolver import resolve_refs

logger = logging.getLogger(__name__)

_OPENAPI_VERBS = frozenset({"get", "post", "put", "delete", "patch", "head", "options"})
_PARAM_LOCATIONS = frozenset({"query", "path"})
_RESPONSE_CODES = ("200", "201", "default")

_TYPE_MAP = {
    "string": FieldType.STRING,
    "integer": FieldType.NUMBER,
    "number": FieldType.NUMBER,
    "boolean": FieldType.BOOLEAN,
    "array": FieldType.ARRAY,
    "object": FieldType.OBJECT,
}

ROOT_CATEGORY_ID = "openapi"


def parse_openapi_content(content: str, fmt: str = "") -> Document:
    """Decode OpenAPI text and convert it.

    Args:
        content: JSON or YAML text.
        fmt: ``"json"``, ``"yaml"``/``"yml"`` or ``""`` to sniff.

    Raises:
        OpenAPIError: If the text cannot be decoded.
    """
    hint = "yaml" if fmt in ("yaml", "yml") else fmt
    return openapi_to_document(decode_openapi(content, hint=hint))


def parse_openapi_file(path: Path | str) -> Document:
    """Load and convert a local ``.json``/``.yaml``/``.yml`` spec."""
    return openapi_to_document(load_openapi(Path(path)))


def parse_openapi_url(url: str, timeout: float = DEFAULT_TIMEOUT) -> Document:
    """Fetch and convert a remote spec."""
    return openapi_to_document(load_openapi(url, timeout=timeout))


def openapi_to_document(raw_spec: dict[str, Any]) -> Document:
    """Convert a decoded OpenAPI spec into a :class:`~reqcraft.models.Document`.

    Args:
        raw_spec: The spec as returned by
            :func:`~reqcraft.openapi.loader.load_openapi`. Internal ``$ref``
            pointers are resolved here.

    Returns:
        A document with at most one base URL and, when the spec declares
        ``paths``, a single top-level ``openapi`` category.

    Raises:
        OpenAPIError: If an internal ``$ref`` cannot be resolved or the spec
            is structurally malformed.
    """
    spec = resolve_refs(raw_spec)
    try:
        return _convert_spec(spec)
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise OpenAPIError(f"Malformed OpenAPI spec: {exc}") from exc


def _convert_spec(spec: dict[str, Any]) -> Document:
    document = Document()

    base_url = _first_server_url(spec)
    if base_url is not None:
        document.config = ConfigBlock(base_urls=[base_url])

    paths = spec.get("paths")
    if not isinstance(paths, dict):
        return document

    tag_groups: dict[str, list[ApiBlock]] = {}
    untagged: list[ApiBlock] = []

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        api, tag = _convert_path(str(path), path_item)
        if not api.methods:
            continue
        if tag is None:
            untagged.append(api)
        else:
            tag_groups.setdefault(tag, []).append(api)

    children = [
        CategoryBlock(
            id=f"{ROOT_CATEGORY_ID}-{tag.lower().replace(' ', '-')}",
            name=tag,
            apis=apis,
        )
        for tag, apis in sorted(tag_groups.items())
    ]

    document.categories.append(
        CategoryBlock(
            id=ROOT_CATEGORY_ID,
            name="OpenAPI",
            desc="Imported from OpenAPI specification",
            apis=untagged,
            children=children,
        )
    )
    logger.debug(
        "Converted OpenAPI spec: %d tagged group(s), %d untagged path(s)",
        len(children),
        len(untagged),
    )
    return document


def _first_server_url(spec: dict[str, Any]) -> Optional[str]:
    servers = spec.get("servers")
    if not isinstance(servers, list) or not servers:
        return None
    first = servers[0]
    if isinstance(first, dict) and first.get("url"):
        return str(first["url"])
    return None


def _convert_path(path: str, path_item: dict[str, Any]) -> tuple[ApiBlock, Optional[str]]:
    """Convert one path item into an API block plus the path's tag.

    The tag is the first tag of the first operation that declares any.
    """
    api = ApiBlock(path=path)
    tag: Optional[str] = None
    path_params = _as_list(path_item.get("parameters"))

    for verb, operation in path_item.items():
        if verb.lower() not in _OPENAPI_VERBS or not isinstance(operation, dict):
            continue

        tags = operation.get("tags")
        if tag is None and isinstance(tags, list) and tags:
            tag = str(tags[0])

        params = _merge_parameters(path_params, _as_list(operation.get("parameters")))
        request_fields = _parameters_to_fields(params)
        request_body = operation.get("requestBody")
        body_schema = (
            _json_schema(request_body.get("content")) if isinstance(request_body, dict) else None
        )
        if body_schema is not None:
            request_fields.extend(_schema_to_fields(body_schema))

        response_fields = _response_fields(operation.get("responses"))

        api.methods.append(
            MethodBlock(
                method=verb.upper(),
                name=operation.get("summary") or operation.get("operationId"),
                description=operation.get("description"),
                request=SchemaBlock(fields=request_fields) if request_fields else None,
                response=SchemaBlock(fields=response_fields) if response_fields else None,
            )
        )

    return api, tag


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level ones with the same name
    and location.
    """
    overridden = {
        (param.get("name", ""), param.get("in", ""))
        for param in op_params
        if isinstance(param, dict)
    }
    merged = [
        param
        for param in path_params
        if isinstance(param, dict)
        and (param.get("name", ""), param.get("in", "")) not in overridden
    ]
    merged.extend(param for param in op_params if isinstance(param, dict))
    return merged


def _parameters_to_fields(params: list[dict[str, Any]]) -> list[SchemaField]:
    """Turn query and path parameters into ``is_params`` fields.

    Header and cookie parameters have no counterpart in the model and are
    dropped, as are parameters without a name.
    """
    fields: list[SchemaField] = []
    for param in params:
        name = param.get("name")
        if not name or param.get("in") not in _PARAM_LOCATIONS:
            continue

        schema = param.get("schema")
        schema = schema if isinstance(schema, dict) else {}
        example = schema.get("example", param.get("example"))

        fields.append(
            SchemaField(
                name=str(name),
                field_type=_convert_type(_schema_type(schema)),
                optional=not param.get("required", False),
                comment=param.get("description"),
                example=_convert_example(example),
                is_params=True,
            )
        )
    return fields


def _json_schema(content: Any) -> Optional[dict[str, Any]]:
    """Return the schema of the first ``application/json`` media type."""
    if not isinstance(content, dict):
        return None
    for media_type, media in content.items():
        if str(media_type).startswith("application/json") and isinstance(media, dict):
            schema = media.get("schema")
            if isinstance(schema, dict):
                return schema
    return None


def _response_fields(responses: Any) -> list[SchemaField]:
    """Fields of the first JSON response among ``200``, ``201`` and ``default``."""
    if not isinstance(responses, dict):
        return []
    # YAML decodes unquoted status codes as integers.
    by_code = {str(code): response for code, response in responses.items()}
    for code in _RESPONSE_CODES:
        response = by_code.get(code)
        if isinstance(response, dict):
            schema = _json_schema(response.get("content"))
            return _schema_to_fields(schema) if schema is not None else []
    return []


def _schema_to_fields(schema: dict[str, Any]) -> list[SchemaField]:
    """Walk an object schema's ``properties`` into fields.

    Objects with properties and arrays whose ``items`` have properties get a
    nested schema. Names missing from ``required`` are optional.
    """
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        return []

    required_names = schema.get("required")
    required = (
        {name for name in required_names if isinstance(name, str)}
        if isinstance(required_names, list)
        else set()
    )
    fields: list[SchemaField] = []

    for name, prop in properties.items():
        prop = prop if isinstance(prop, dict) else {}
        type_name = _schema_type(prop)

        nested: Optional[SchemaBlock] = None
        if type_name == "object":
            nested_fields = _schema_to_fields(prop)
            if nested_fields:
                nested = SchemaBlock(fields=nested_fields)
        elif type_name == "array" and isinstance(prop.get("items"), dict):
            nested_fields = _schema_to_fields(prop["items"])
            if nested_fields:
                nested = SchemaBlock(fields=nested_fields)

        fields.append(
            SchemaField(
                name=str(name),
                field_type=_convert_type(type_name),
                optional=name not in required,
                nested=nested,
                comment=prop.get("description"),
                example=_convert_example(prop.get("example")),
            )
        )

    return fields


def _schema_type(schema: dict[str, Any]) -> str:
    """Return a schema's type name, defaulting to ``"string"``.

    OpenAPI 3.1 type arrays (e.g. ``["string", "null"]``) yield their first
    non-null entry.
    """
    type_value = schema.get("type", "string")
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        return str(non_null[0]) if non_null else "string"
    return str(type_value)


def _convert_type(type_name: str) -> FieldType:
    return _TYPE_MAP.get(type_name.lower(), FieldType.STRING)


def _convert_example(value: Any) -> Optional[MockValue]:
    """Keep scalar examples; drop objects, arrays and nulls."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return value
    return None
