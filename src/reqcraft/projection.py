"""Flatten a resolved :class:`~reqcraft.models.Document` into consumer views.

The document tree mirrors the source text: endpoints live either at the top
level or inside arbitrarily nested categories, and categories contribute path
prefixes. Consumers (the CLI, a mock server, an editor sidebar) want flat
lists instead, which this module computes on demand.

Ids are assigned by one counter shared across every endpoint kind, in
document order: top-level HTTP methods, WebSocket connections, Socket-style
connections, SSE streams, then each category depth-first. Projecting the
same document twice therefore yields the same ids.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from typing import Any, Optional

from reqcraft.models import (
    ApiBlock,
    ApiEndpoint,
    CategoryBlock,
    CategoryInfo,
    Document,
    EndpointType,
    FieldType,
    HeaderDefinition,
    SchemaBlock,
    SseBlock,
    VariableDefinition,
    WsBlock,
)

logger = logging.getLogger(__name__)

SSE_METHOD = "SSE"


# ------------------------------------------------------------------ #
# Settings accessors
# ------------------------------------------------------------------ #


def base_urls(document: Document) -> list[str]:
    """Return the configured base URLs, or an empty list without ``config``."""
    return list(document.config.base_urls) if document.config else []


def variables(document: Document) -> list[VariableDefinition]:
    return list(document.config.variables) if document.config else []


def headers(document: Document) -> list[HeaderDefinition]:
    return list(document.config.headers) if document.config else []


# ------------------------------------------------------------------ #
# Endpoints
# ------------------------------------------------------------------ #


class _EndpointBuilder:
    """Carries the state shared by one :func:`to_endpoints` walk."""

    def __init__(self, base_url: Optional[str]) -> None:
        self.base_url = base_url.rstrip("/") if base_url is not None else None
        self._ids: Iterator[int] = itertools.count(1)

    def _full_url(self, path: str) -> Optional[str]:
        return f"{self.base_url}{path}" if self.base_url is not None else None

    def http(
        self, api: ApiBlock, prefix: str, category: Optional[CategoryBlock]
    ) -> Iterator[ApiEndpoint]:
        path = f"{prefix}{api.path}"
        for method in api.methods:
            yield ApiEndpoint(
                id=f"api-{next(self._ids)}",
                endpoint_type=EndpointType.HTTP,
                path=path,
                full_url=self._full_url(path),
                method=method.method,
                name=method.name,
                description=method.description,
                request=method.request,
                response=method.response,
                **_category_fields(category),
            )

    def websocket(self, ws: WsBlock, category: Optional[CategoryBlock]) -> ApiEndpoint:
        return ApiEndpoint(
            id=f"ws-{next(self._ids)}",
            endpoint_type=EndpointType.WEBSOCKET,
            path=ws.url,
            full_url=ws.url,
            name=ws.name,
            description=ws.description,
            events=list(ws.events),
            **_category_fields(category),
        )

    def socketio(self, sio: WsBlock, category: Optional[CategoryBlock]) -> ApiEndpoint:
        return ApiEndpoint(
            id=f"sio-{next(self._ids)}",
            endpoint_type=EndpointType.SOCKETIO,
            path=sio.url,
            full_url=sio.url,
            name=sio.name,
            description=sio.description,
            events=list(sio.events),
            auth=sio.auth,
            connect_headers=sio.connect_headers,
            **_category_fields(category),
        )

    def sse(
        self, sse: SseBlock, prefix: str, category: Optional[CategoryBlock]
    ) -> ApiEndpoint:
        path = f"{prefix}{sse.path}"
        return ApiEndpoint(
            id=f"sse-{next(self._ids)}",
            endpoint_type=EndpointType.SSE,
            path=path,
            full_url=self._full_url(path),
            method=SSE_METHOD,
            name=sse.name,
            description=sse.description,
            request=sse.request,
            sse_events=list(sse.events),
            **_category_fields(category),
        )

    def container(
        self,
        apis: list[ApiBlock],
        ws_apis: list[WsBlock],
        socketio_apis: list[WsBlock],
        sse_apis: list[SseBlock],
        prefix: str = "",
        category: Optional[CategoryBlock] = None,
    ) -> Iterator[ApiEndpoint]:
        """Yield the endpoints directly held by a document or category."""
        for api in apis:
            yield from self.http(api, prefix, category)
        for ws in ws_apis:
            yield self.websocket(ws, category)
        for sio in socketio_apis:
            yield self.socketio(sio, category)
        for sse in sse_apis:
            yield self.sse(sse, prefix, category)

    def category(self, category: CategoryBlock, parent_prefix: str) -> Iterator[ApiEndpoint]:
        prefix = f"{parent_prefix}{category.prefix or ''}"
        yield from self.container(
            category.apis,
            category.ws_apis,
            category.socketio_apis,
            category.sse_apis,
            prefix,
            category,
        )
        for child in category.children:
            yield from self.category(child, prefix)


def _category_fields(category: Optional[CategoryBlock]) -> dict[str, Any]:
    if category is None:
        return {}
    return {"category_id": category.id, "category_name": category.name}


def to_endpoints(document: Document) -> list[ApiEndpoint]:
    """Flatten *document* into one endpoint per HTTP method or stream.

    HTTP and SSE paths include every enclosing category prefix, and their
    ``full_url`` joins the first base URL (trailing ``/`` trimmed) with that
    path. WebSocket and Socket-style endpoints use their connection URL as
    both ``path`` and ``full_url``.
    """
    urls = base_urls(document)
    builder = _EndpointBuilder(urls[0] if urls else None)

    endpoints = list(
        builder.container(
            document.apis,
            document.ws_apis,
            document.socketio_apis,
            document.sse_apis,
        )
    )
    for category in document.categories:
        endpoints.extend(builder.category(category, ""))

    logger.debug("Projected %d endpoint(s)", len(endpoints))
    return endpoints


def find_endpoint(
    endpoints: list[ApiEndpoint], method: str, path: str
) -> Optional[ApiEndpoint]:
    """Return the first HTTP endpoint matching *method* and *path*.

    The method comparison is case-insensitive; the path must match the
    prefixed endpoint path exactly.
    """
    wanted = method.upper()
    for endpoint in endpoints:
        if (
            endpoint.endpoint_type is EndpointType.HTTP
            and endpoint.path == path
            and (endpoint.method or "").upper() == wanted
        ):
            return endpoint
    return None


# ------------------------------------------------------------------ #
# Categories
# ------------------------------------------------------------------ #


def _category_info(category: CategoryBlock) -> CategoryInfo:
    count = sum(len(api.methods) for api in category.apis)
    count += len(category.ws_apis) + len(category.socketio_apis) + len(category.sse_apis)
    return CategoryInfo(
        id=category.id,
        name=category.name,
        desc=category.desc,
        endpoint_count=count,
        children=[_category_info(child) for child in category.children],
    )


def to_categories(document: Document) -> list[CategoryInfo]:
    """Mirror the category tree with per-category endpoint counts.

    Each count covers the category's own HTTP methods and streams only.
    """
    return [_category_info(category) for category in document.categories]


# ------------------------------------------------------------------ #
# Mock payloads
# ------------------------------------------------------------------ #

_TYPE_DEFAULTS = {
    FieldType.NUMBER: 0,
    FieldType.BOOLEAN: False,
}


def mock_payload(schema: Optional[SchemaBlock]) -> dict[str, Any]:
    """Render *schema* into a JSON-compatible mock value.

    Each field becomes its ``@mock`` value, otherwise the payload of its
    nested schema, otherwise a default for its type: ``"mock_<name>"`` for
    strings, ``0``, ``False``, ``[]`` or ``{}``. A later field with a
    duplicate name overwrites the earlier one.

    Args:
        schema: A response (or any other) schema; ``None`` renders ``{}``.

    Returns:
        A fresh dictionary on every call.
    """
    payload: dict[str, Any] = {}
    if schema is None:
        return payload

    for field in schema.fields:
        if field.mock is not None:
            value: Any = field.mock
        elif field.nested is not None:
            value = mock_payload(field.nested)
        elif field.field_type is FieldType.STRING:
            value = f"mock_{field.name}"
        elif field.field_type is FieldType.ARRAY:
            value = []
        elif field.field_type is FieldType.OBJECT:
            value = {}
        else:
            value = _TYPE_DEFAULTS[field.field_type]
        payload[field.name] = value

    return payload
