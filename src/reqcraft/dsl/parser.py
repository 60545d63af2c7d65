"""Recursive-descent parser for ``.rqc`` documents.

:class:`Parser` consumes the token stream of one document and builds a
:class:`~reqcraft.models.Document`. Top-level statements are dispatched on
their leading keyword::

    config   { baseUrl ... cors ... mock ... variable ... header ... }
    api      <path> { <verb> { name "..." request {...} response {...} } }
    ws       <url>  { name "..." auth {...} headers {...} event <name> {...} }
    socketio <url>  { ... same shape as ws ... }
    sse      <path> { name "..." request {...} event <name> { <fields> } }
    category <name> { name "..." desc "..." prefix <p> <blocks>* }
    import   <path-or-url>

Unknown keywords, at the top level or inside any block, are skipped without
error. Structural mismatches are fatal: the first failed :meth:`Parser.expect`
raises :class:`~reqcraft.exceptions.UnexpectedTokenError` and no partial
document is returned.

Field syntax inside schema blocks::

    <name> <Type>[?] [@params] [@mock(<v>)] [@example(<v>)] [// comment]
    <name> { <fields> }[?] ...
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from pathlib import Path
from typing import Optional

from reqcraft.dsl.lexer import Lexer, Token, TokenType
from reqcraft.exceptions import DocumentReadError, UnexpectedTokenError
from reqcraft.models import (
    ApiBlock,
    CategoryBlock,
    ConfigBlock,
    Document,
    FieldType,
    HeaderDefinition,
    MethodBlock,
    MockValue,
    SchemaBlock,
    SchemaField,
    SseBlock,
    SseEvent,
    VariableDefinition,
    WsBlock,
    WsEvent,
)

HTTP_VERBS = frozenset({"get", "post", "put", "delete", "patch"})

_TYPE_KEYWORDS = {
    "String": FieldType.STRING,
    "Number": FieldType.NUMBER,
    "Boolean": FieldType.BOOLEAN,
    "Array": FieldType.ARRAY,
}

# Keywords that end a variable definition when no type is given.
_VARIABLE_TERMINATORS = frozenset({"default", "variable", "header"})


def parse_document(text: str) -> Document:
    """Parse DSL *text* into a :class:`~reqcraft.models.Document`.

    Raises:
        UnexpectedTokenError: On the first structural mismatch.
    """
    return Parser(text).parse()


def parse_file(path: Path | str) -> Document:
    """Read and parse a ``.rqc`` file.

    Raises:
        DocumentReadError: If the file cannot be read.
        UnexpectedTokenError: If the file contains a syntax error.
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentReadError(f"Failed to read {file_path}: {exc}") from exc
    return parse_document(text)


class Parser:
    """Single-use parser holding a one-token lookahead over a :class:`Lexer`."""

    def __init__(self, text: str) -> None:
        self._lexer = Lexer(text)
        self._current: Token = self._lexer.next_token()
        self._previous_line = self._current.line

    # ------------------------------------------------------------------ #
    # Token helpers
    # ------------------------------------------------------------------ #

    def _advance(self) -> None:
        self._previous_line = self._current.line
        self._current = self._lexer.next_token()

    def _at(self, kind: TokenType) -> bool:
        return self._current.type is kind

    def expect(self, kind: TokenType) -> str:
        """Consume the current token if it is of *kind* and return its literal.

        Raises:
            UnexpectedTokenError: If the current token is of another kind.
        """
        if self._current.type is not kind:
            raise UnexpectedTokenError(kind.value, self._current.type.value, self._current.line)
        literal = self._current.literal
        self._advance()
        return literal

    def _in_block(self) -> bool:
        """Return ``False`` at the closing brace of the current block.

        Raises:
            UnexpectedTokenError: If the input ends before the block closes.
        """
        if self._at(TokenType.EOF):
            raise UnexpectedTokenError(
                TokenType.RBRACE.value, TokenType.EOF.value, self._current.line
            )
        return not self._at(TokenType.RBRACE)

    def _take_literal(self) -> str:
        """Return the current literal, whatever its kind, and advance."""
        literal = self._current.literal
        self._advance()
        return literal

    # ------------------------------------------------------------------ #
    # Document
    # ------------------------------------------------------------------ #

    def parse(self) -> Document:
        """Parse the whole token stream.

        Raises:
            UnexpectedTokenError: On the first structural mismatch.
        """
        document = Document()
        counter = itertools.count(1)
        pending_doc: Optional[str] = None

        while not self._at(TokenType.EOF):
            if self._at(TokenType.DOC_COMMENT):
                pending_doc = self._take_literal()
                continue

            keyword = self._current.literal if self._at(TokenType.IDENT) else ""
            if keyword == "config":
                document.config = self._parse_config_block()
            elif keyword == "api":
                document.apis.append(self._parse_api_block())
            elif keyword == "ws":
                document.ws_apis.append(self._parse_ws_block(pending_doc))
            elif keyword == "socketio":
                document.socketio_apis.append(self._parse_ws_block(pending_doc))
            elif keyword == "sse":
                document.sse_apis.append(self._parse_sse_block(pending_doc))
            elif keyword == "import":
                document.imports.append(self._parse_import())
            elif keyword == "category":
                document.categories.append(self._parse_category_block(counter))
            else:
                self._advance()
                continue
            pending_doc = None

        return document

    # ------------------------------------------------------------------ #
    # config { ... }
    # ------------------------------------------------------------------ #

    def _parse_config_block(self) -> ConfigBlock:
        self._advance()
        self.expect(TokenType.LBRACE)
        config = ConfigBlock()

        while self._in_block():
            key = self._current.literal
            if key == "baseUrl":
                self._advance()
                urls = self._take_literal()
                config.base_urls = [u.strip() for u in urls.split(",") if u.strip()]
            elif key == "cors":
                self._advance()
                config.cors = self._take_literal() == "true"
            elif key == "mock":
                self._advance()
                config.mock = self._take_literal() == "true"
            elif key == "variable":
                config.variables.append(self._parse_variable_definition())
            elif key == "header":
                config.headers.append(self._parse_header_definition())
            else:
                self._advance()

        self.expect(TokenType.RBRACE)
        return config

    def _parse_default_value(self) -> str:
        """Parse ``( <value> )`` after a ``default`` keyword."""
        self.expect(TokenType.LPAREN)
        value = self._take_literal()
        self.expect(TokenType.RPAREN)
        return value

    def _parse_variable_definition(self) -> VariableDefinition:
        self._advance()
        name = self._take_literal()

        var_type = "String"
        if not (
            self._current.literal in _VARIABLE_TERMINATORS or self._at(TokenType.RBRACE)
        ):
            var_type = self._take_literal()

        default_value = None
        if self._current.literal == "default":
            self._advance()
            default_value = self._parse_default_value()

        return VariableDefinition(name=name, var_type=var_type, default_value=default_value)

    def _parse_header_definition(self) -> HeaderDefinition:
        self._advance()
        name = self._take_literal()

        default_value = None
        if self._at(TokenType.AT):
            self._advance()
            if self._current.literal == "default":
                self._advance()
                default_value = self._parse_default_value()

        return HeaderDefinition(name=name, default_value=default_value)

    # ------------------------------------------------------------------ #
    # api <path> { <verb> { ... } }
    # ------------------------------------------------------------------ #

    def _parse_api_block(self) -> ApiBlock:
        self._advance()
        api = ApiBlock(path=self._take_literal())
        self.expect(TokenType.LBRACE)

        pending_doc: Optional[str] = None
        while self._in_block():
            if self._at(TokenType.DOC_COMMENT):
                pending_doc = self._take_literal()
                continue

            if self._current.literal.lower() in HTTP_VERBS:
                method = self._parse_method_block()
                if pending_doc is not None:
                    method.description = pending_doc
                    pending_doc = None
                api.methods.append(method)
            else:
                self._advance()

        self.expect(TokenType.RBRACE)
        return api

    def _parse_method_block(self) -> MethodBlock:
        method = MethodBlock(method=self._take_literal().upper())
        self.expect(TokenType.LBRACE)

        while self._in_block():
            key = self._current.literal
            if key == "name":
                self._advance()
                method.name = self._take_literal() if self._at(TokenType.STRING) else method.name
            elif key == "request":
                self._advance()
                method.request = self._parse_schema_block()
            elif key == "response":
                self._advance()
                method.response = self._parse_schema_block()
            else:
                self._advance()

        self.expect(TokenType.RBRACE)
        return method

    # ------------------------------------------------------------------ #
    # ws / socketio <url> { ... }
    # ------------------------------------------------------------------ #

    def _parse_ws_block(self, description: Optional[str] = None) -> WsBlock:
        self._advance()
        ws = WsBlock(url=self._take_literal())
        self.expect(TokenType.LBRACE)

        pending_doc: Optional[str] = None
        while self._in_block():
            if self._at(TokenType.DOC_COMMENT):
                pending_doc = self._take_literal()
                continue

            key = self._current.literal
            if key == "name":
                self._advance()
                ws.name = self._take_literal() if self._at(TokenType.STRING) else ws.name
            elif key == "auth":
                self._advance()
                ws.auth = self._parse_schema_block()
            elif key == "headers":
                self._advance()
                ws.connect_headers = self._parse_schema_block()
            elif key == "event":
                ws.events.append(self._parse_ws_event())
                pending_doc = None
            else:
                self._advance()

        self.expect(TokenType.RBRACE)
        ws.description = pending_doc if pending_doc is not None else description
        return ws

    def _parse_ws_event(self) -> WsEvent:
        self._advance()
        event = WsEvent(name=self._take_literal())
        self.expect(TokenType.LBRACE)

        while self._in_block():
            key = self._current.literal
            if key == "request":
                self._advance()
                event.request = self._parse_schema_block()
            elif key == "response":
                self._advance()
                event.response = self._parse_schema_block()
            else:
                self._advance()

        self.expect(TokenType.RBRACE)
        return event

    # ------------------------------------------------------------------ #
    # sse <path> { ... }
    # ------------------------------------------------------------------ #

    def _parse_sse_block(self, description: Optional[str] = None) -> SseBlock:
        self._advance()
        sse = SseBlock(path=self._take_literal())
        self.expect(TokenType.LBRACE)

        pending_doc: Optional[str] = None
        while self._in_block():
            if self._at(TokenType.DOC_COMMENT):
                pending_doc = self._take_literal()
                continue

            key = self._current.literal
            if key == "name":
                self._advance()
                sse.name = self._take_literal() if self._at(TokenType.STRING) else sse.name
            elif key == "request":
                self._advance()
                sse.request = self._parse_schema_block()
            elif key == "event":
                self._advance()
                name = self._take_literal()
                schema = self._parse_schema_block()
                sse.events.append(SseEvent(name=name, fields=schema.fields))
                pending_doc = None
            else:
                self._advance()

        self.expect(TokenType.RBRACE)
        sse.description = pending_doc if pending_doc is not None else description
        return sse

    # ------------------------------------------------------------------ #
    # Schemas and fields
    # ------------------------------------------------------------------ #

    def _parse_schema_block(self) -> SchemaBlock:
        self.expect(TokenType.LBRACE)
        fields: list[SchemaField] = []

        while self._in_block():
            if self._at(TokenType.IDENT):
                fields.append(self._parse_field())
            else:
                self._advance()

        self.expect(TokenType.RBRACE)

        optional = False
        if self._at(TokenType.QUESTION):
            self._advance()
            optional = True

        return SchemaBlock(fields=fields, optional=optional)

    def _parse_field(self) -> SchemaField:
        field = SchemaField(name=self._take_literal())

        if self._at(TokenType.LBRACE):
            nested = self._parse_schema_block()
            field.field_type = FieldType.OBJECT
            field.nested = nested
            field.optional = nested.optional
        else:
            # A missing type keyword defaults to String without consuming the
            # following token.
            if self._at(TokenType.IDENT):
                field.field_type = _TYPE_KEYWORDS.get(self._take_literal(), FieldType.STRING)
            else:
                field.field_type = FieldType.STRING
            if self._at(TokenType.QUESTION):
                self._advance()
                field.optional = True

        while self._at(TokenType.AT):
            self._advance()
            annotation = self._take_literal()
            if annotation == "params":
                field.is_params = True
            elif annotation == "mock":
                field.mock = self._parse_annotation_value()
            elif annotation == "example":
                field.example = self._parse_annotation_value()

        if self._at(TokenType.COMMENT) and self._current.line == self._previous_line:
            field.comment = self._take_literal()

        return field

    def _parse_annotation_value(self) -> MockValue:
        """Parse ``( <literal> )`` into a mock value."""
        self.expect(TokenType.LPAREN)

        value: MockValue
        if self._at(TokenType.STRING):
            value = self._take_literal()
        elif self._at(TokenType.NUMBER):
            value = _to_number(self._take_literal())
        elif self._at(TokenType.IDENT):
            literal = self._take_literal()
            if literal == "true":
                value = True
            elif literal == "false":
                value = False
            else:
                value = literal
        else:
            value = ""

        self.expect(TokenType.RPAREN)
        return value

    # ------------------------------------------------------------------ #
    # import / category
    # ------------------------------------------------------------------ #

    def _parse_import(self) -> str:
        self._advance()
        return self._take_literal().strip("\"'")

    def _parse_category_block(self, counter: Iterator[int]) -> CategoryBlock:
        self._advance()
        name = self._take_literal()
        self.expect(TokenType.LBRACE)

        category = CategoryBlock(id=f"cat-{name}-{next(counter)}")
        pending_doc: Optional[str] = None

        while self._in_block():
            if self._at(TokenType.DOC_COMMENT):
                pending_doc = self._take_literal()
                continue

            key = self._current.literal if self._at(TokenType.IDENT) else ""
            if key == "name":
                self._advance()
                category.name = self._take_literal() if self._at(TokenType.STRING) else category.name
            elif key == "desc":
                self._advance()
                category.desc = self._take_literal() if self._at(TokenType.STRING) else category.desc
            elif key == "prefix":
                self._advance()
                category.prefix = self._take_literal()
            elif key == "api":
                category.apis.append(self._parse_api_block())
            elif key == "ws":
                category.ws_apis.append(self._parse_ws_block(pending_doc))
            elif key == "socketio":
                category.socketio_apis.append(self._parse_ws_block(pending_doc))
            elif key == "sse":
                category.sse_apis.append(self._parse_sse_block(pending_doc))
            elif key == "category":
                category.children.append(self._parse_category_block(counter))
            else:
                self._advance()
                continue
            pending_doc = None

        self.expect(TokenType.RBRACE)
        return category


def _to_number(literal: str) -> float:
    try:
        return float(literal)
    except ValueError:
        return 0.0
