"""reqcraft -- Describe HTTP, WebSocket, Socket-style and SSE APIs in a small DSL.

This package turns ``.rqc`` documents into a typed, queryable configuration
model. A document declares base URLs, variables and headers, endpoints with
request/response schemas and mock values, and nested categories that
contribute path prefixes. Documents may import other ``.rqc`` files and
local or remote OpenAPI 3.x specs, which are merged into one model.

Typical workflow::

    reqcraft check                        # resolve .rqc and report imports
    reqcraft inspect endpoints            # list flattened endpoints
    reqcraft inspect mock GET /users      # render a mock response

Modules:
    dsl: Lexer and recursive-descent parser for ``.rqc`` text.
    openapi: OpenAPI loading, ``$ref`` resolution and conversion.
    imports: Import resolution and document merging.
    projection: Flat endpoint/category views and mock payloads.
    store: Hot-swappable configuration snapshots.
    models: Pydantic models shared across the entire package.
    config: Project settings with precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
    app: Typer application and CLI entry point.
"""

__version__ = "0.1.0"
