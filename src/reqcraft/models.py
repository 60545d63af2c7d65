"""Canonical Pydantic models shared across all reqcraft modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Document models** -- the tree produced by the DSL parser and the OpenAPI
adapter, merged by the import resolver:
    :class:`Document`, :class:`ConfigBlock`, :class:`VariableDefinition`,
    :class:`HeaderDefinition`, :class:`CategoryBlock`, :class:`ApiBlock`,
    :class:`MethodBlock`, :class:`WsBlock`, :class:`WsEvent`,
    :class:`SseBlock`, :class:`SseEvent`, :class:`SchemaBlock`,
    :class:`SchemaField`, :class:`FieldType` and :data:`MockValue`.

**Projection models** -- flattened views handed to consumers:
    :class:`EndpointType`, :class:`ApiEndpoint` and :class:`CategoryInfo`.

**Configuration models** -- project settings loaded from ``reqcraft.json``:
    :class:`ProjectConfig`.

Document and projection models serialise with camelCase aliases
(``model_dump(by_alias=True)``) and accept either spelling on input.
"""

from __future__ import annotations

import enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from pydantic.alias_generators import to_camel


class _Node(BaseModel):
    """Base for every document and projection node."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Schemas ---


class FieldType(str, enum.Enum):
    """Type tag of a :class:`SchemaField`.

    Unknown DSL type keywords and unknown OpenAPI types both map to
    ``STRING``.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


MockValue = Union[StrictBool, float, StrictStr]
"""Literal attached to a field by ``@mock(...)`` or ``@example(...)``.

Strict members keep ``true`` a boolean and ``"1"`` a string when a document
is re-validated from JSON.
"""


class SchemaField(_Node):
    """A single field inside a :class:`SchemaBlock`.

    Object fields carry their properties in ``nested``; OpenAPI array fields
    may carry the item properties there as well.
    """

    name: str
    field_type: FieldType = FieldType.STRING
    optional: bool = False
    nested: Optional[SchemaBlock] = None
    mock: Optional[MockValue] = None
    example: Optional[MockValue] = None
    comment: Optional[str] = None
    is_params: bool = Field(
        default=False, description="Query/path parameter rather than body field"
    )


class SchemaBlock(_Node):
    """Ordered field list describing a request, response, or event payload.

    Duplicate field names are allowed; consumers that render the block into
    a mapping let later fields shadow earlier ones.
    """

    fields: list[SchemaField] = Field(default_factory=list)
    optional: bool = False


# --- Settings block ---


class VariableDefinition(_Node):
    """A ``variable <name> [<Type>] [default(<value>)]`` entry of ``config``."""

    name: str
    var_type: str = "String"
    default_value: Optional[str] = None


class HeaderDefinition(_Node):
    """A ``header <name> [@default(<value>)]`` entry of ``config``."""

    name: str
    default_value: Optional[str] = None


class ConfigBlock(_Node):
    """Top-level ``config { ... }`` settings.

    The first entry of ``base_urls`` is the canonical base URL used to build
    full endpoint URLs.
    """

    base_urls: list[str] = Field(default_factory=list)
    cors: bool = False
    mock: bool = False
    variables: list[VariableDefinition] = Field(default_factory=list)
    headers: list[HeaderDefinition] = Field(default_factory=list)


# --- Endpoint blocks ---


class MethodBlock(_Node):
    """One HTTP verb of an :class:`ApiBlock`."""

    method: str
    name: Optional[str] = None
    description: Optional[str] = None
    request: Optional[SchemaBlock] = None
    response: Optional[SchemaBlock] = None


class ApiBlock(_Node):
    """An ``api <path> { ... }`` block: one path, one method block per verb."""

    path: str
    methods: list[MethodBlock] = Field(default_factory=list)


class WsEvent(_Node):
    """A named event of a WebSocket or Socket-style connection."""

    name: str
    request: Optional[SchemaBlock] = None
    response: Optional[SchemaBlock] = None


class WsBlock(_Node):
    """A ``ws`` or ``socketio`` connection block.

    ``auth`` and ``connect_headers`` are only meaningful for Socket-style
    connections but are parsed for both.
    """

    url: str
    name: Optional[str] = None
    description: Optional[str] = None
    auth: Optional[SchemaBlock] = None
    connect_headers: Optional[SchemaBlock] = None
    events: list[WsEvent] = Field(default_factory=list)


class SseEvent(_Node):
    """A named server-sent event and the fields of its payload."""

    name: str
    fields: list[SchemaField] = Field(default_factory=list)


class SseBlock(_Node):
    """An ``sse <path> { ... }`` server-sent-events stream."""

    path: str
    name: Optional[str] = None
    description: Optional[str] = None
    request: Optional[SchemaBlock] = None
    events: list[SseEvent] = Field(default_factory=list)


class CategoryBlock(_Node):
    """A named, nestable group of endpoints contributing a path prefix.

    ``id`` is generated while parsing (``cat-<name>-<n>``) and is unique
    within one parse only.
    """

    id: str
    name: Optional[str] = None
    desc: Optional[str] = None
    prefix: Optional[str] = None
    apis: list[ApiBlock] = Field(default_factory=list)
    ws_apis: list[WsBlock] = Field(default_factory=list)
    socketio_apis: list[WsBlock] = Field(default_factory=list)
    sse_apis: list[SseBlock] = Field(default_factory=list)
    children: list[CategoryBlock] = Field(default_factory=list)


class Document(_Node):
    """Root of one parsed (or merged) configuration.

    ``imports`` holds the raw import references found while parsing. The
    import resolver drains it, so a resolved document always has an empty
    list.
    """

    config: Optional[ConfigBlock] = None
    imports: list[str] = Field(default_factory=list)
    apis: list[ApiBlock] = Field(default_factory=list)
    ws_apis: list[WsBlock] = Field(default_factory=list)
    socketio_apis: list[WsBlock] = Field(default_factory=list)
    sse_apis: list[SseBlock] = Field(default_factory=list)
    categories: list[CategoryBlock] = Field(default_factory=list)


# --- Projection models ---


class EndpointType(str, enum.Enum):
    """Kind of a flattened :class:`ApiEndpoint`."""

    HTTP = "http"
    WEBSOCKET = "websocket"
    SOCKETIO = "socketio"
    SSE = "sse"


class ApiEndpoint(_Node):
    """One addressable endpoint produced by :func:`~reqcraft.projection.to_endpoints`.

    ``path`` already includes every enclosing category prefix. ``full_url``
    is ``None`` for HTTP and SSE endpoints when no base URL is configured.
    """

    id: str
    endpoint_type: EndpointType
    path: str
    full_url: Optional[str] = None
    method: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    request: Optional[SchemaBlock] = None
    response: Optional[SchemaBlock] = None
    events: Optional[list[WsEvent]] = None
    sse_events: Optional[list[SseEvent]] = None
    auth: Optional[SchemaBlock] = None
    connect_headers: Optional[SchemaBlock] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None


class CategoryInfo(_Node):
    """Summary node produced by :func:`~reqcraft.projection.to_categories`.

    ``endpoint_count`` counts the category's own endpoints only, never those
    of its children.
    """

    id: str
    name: Optional[str] = None
    desc: Optional[str] = None
    endpoint_count: int = 0
    children: list[CategoryInfo] = Field(default_factory=list)


# --- Project configuration ---


class ProjectConfig(BaseModel):
    """Project settings persisted in ``./reqcraft.json``.

    Resolved by :func:`~reqcraft.config.resolve_config`, which layers
    environment variables and CLI flags over the file's values.
    """

    root_file: str = Field(default=".rqc", description="Root DSL document")
    fetch_timeout: float = Field(
        default=30.0, description="Timeout in seconds for remote OpenAPI imports"
    )
    remote_imports: bool = Field(
        default=True, description="Follow http(s) imports; disable for offline use"
    )
    log_level: str = Field(default="WARNING", description="Logging level name")


SchemaField.model_rebuild()
