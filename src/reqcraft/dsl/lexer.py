"""Tokenizer for the ``.rqc`` endpoint-description language.

:class:`Lexer` turns raw document text into :class:`Token` objects one at a
time. Comments are not discarded: line comments attach to fields and doc
comments become endpoint descriptions, so both are emitted as tokens for the
parser to consume.

Identifiers use a permissive character set (alphanumerics plus
``_ / : . - ,``) so unquoted paths, URLs and comma-separated lists lex as a
single token::

    api /api/users { ... }
    config { baseUrl http://localhost:3000,http://staging:3000 }

Characters that start no other token (``#``, ``%``, ``!``, a lone ``*``) are
consumed one at a time as :attr:`TokenType.UNKNOWN` tokens, which every parser
loop skips.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass

_SINGLE_CHAR_TOKENS = {
    "{": "LBRACE",
    "}": "RBRACE",
    "(": "LPAREN",
    ")": "RPAREN",
    "?": "QUESTION",
    "@": "AT",
}

_IDENT_PUNCTUATION = frozenset("_/:.-,")


class TokenType(enum.Enum):
    """Kinds of token produced by :class:`Lexer`."""

    IDENT = "IDENT"
    STRING = "STRING"
    NUMBER = "NUMBER"
    LBRACE = "LBRACE"
    RBRACE = "RBRACE"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    QUESTION = "QUESTION"
    AT = "AT"
    COMMENT = "COMMENT"
    DOC_COMMENT = "DOC_COMMENT"
    UNKNOWN = "UNKNOWN"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A single lexeme with the 1-based line it starts on."""

    type: TokenType
    literal: str
    line: int


class Lexer:
    """Pull-based tokenizer over one document.

    Call :meth:`next_token` repeatedly; once the input is exhausted every
    further call returns an ``EOF`` token. Iterating a lexer yields tokens up
    to, but not including, ``EOF``.

    Args:
        text: Full document source.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._line = 1

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            if token.type is TokenType.EOF:
                return
            yield token

    # ------------------------------------------------------------------ #
    # Character access
    # ------------------------------------------------------------------ #

    def _peek(self, offset: int = 0) -> str:
        """Return the character *offset* positions ahead, or ``""`` at the end."""
        index = self._pos + offset
        if index < len(self._text):
            return self._text[index]
        return ""

    def _advance(self) -> None:
        if self._pos < len(self._text):
            if self._text[self._pos] == "\n":
                self._line += 1
            self._pos += 1

    def _skip_whitespace(self) -> None:
        while self._peek() and self._peek().isspace():
            self._advance()

    # ------------------------------------------------------------------ #
    # Token readers
    # ------------------------------------------------------------------ #

    def _read_string(self) -> str:
        quote = self._peek()
        self._advance()
        chars: list[str] = []
        while self._peek():
            ch = self._peek()
            self._advance()
            if ch == quote:
                break
            chars.append(ch)
        return "".join(chars)

    def _read_number(self) -> str:
        chars: list[str] = []
        if self._peek() == "-":
            chars.append("-")
            self._advance()
        has_dot = False
        while self._peek():
            ch = self._peek()
            if "0" <= ch <= "9":
                chars.append(ch)
            elif ch == "." and not has_dot:
                has_dot = True
                chars.append(ch)
            else:
                break
            self._advance()
        return "".join(chars)

    def _read_identifier(self) -> str:
        chars: list[str] = []
        while self._peek():
            ch = self._peek()
            if not (ch.isalnum() or ch in _IDENT_PUNCTUATION):
                break
            chars.append(ch)
            self._advance()
        return "".join(chars)

    def _read_comment(self) -> str:
        self._advance()
        self._advance()
        chars: list[str] = []
        while self._peek() and self._peek() != "\n":
            chars.append(self._peek())
            self._advance()
        return "".join(chars).strip()

    def _read_doc_comment(self) -> str:
        for _ in range(3):
            self._advance()
        chars: list[str] = []
        while self._peek():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                break
            chars.append(self._peek())
            self._advance()

        lines = (line.strip().lstrip("*").strip() for line in "".join(chars).splitlines())
        return " ".join(line for line in lines if line)

    def _starts_number(self, ch: str) -> bool:
        return "0" <= ch <= "9" or (ch == "-" and "0" <= self._peek(1) <= "9")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def next_token(self) -> Token:
        """Return the next token and advance past it."""
        self._skip_whitespace()
        line = self._line
        ch = self._peek()

        if not ch:
            return Token(TokenType.EOF, "", line)

        if ch in _SINGLE_CHAR_TOKENS:
            self._advance()
            return Token(TokenType[_SINGLE_CHAR_TOKENS[ch]], ch, line)

        if ch in ('"', "'"):
            return Token(TokenType.STRING, self._read_string(), line)

        if ch == "/" and self._peek(1) == "/":
            return Token(TokenType.COMMENT, self._read_comment(), line)

        if ch == "/" and self._peek(1) == "*" and self._peek(2) == "*":
            return Token(TokenType.DOC_COMMENT, self._read_doc_comment(), line)

        if self._starts_number(ch):
            return Token(TokenType.NUMBER, self._read_number(), line)

        ident = self._read_identifier()
        if ident:
            return Token(TokenType.IDENT, ident, line)

        self._advance()
        return Token(TokenType.UNKNOWN, ch, line)
