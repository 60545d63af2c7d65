"""DSL front end -- tokenize and parse ``.rqc`` endpoint descriptions.

Typical usage::

    from reqcraft.dsl import parse_document

    document = parse_document('api /ping { get { response { ok Boolean } } }')
    document.apis[0].methods[0].method   # "GET"

Sub-modules:

* :mod:`~reqcraft.dsl.lexer` -- character stream to :class:`Token` stream.
* :mod:`~reqcraft.dsl.parser` -- recursive-descent parser producing a
  :class:`~reqcraft.models.Document`.
"""

from reqcraft.dsl.lexer import Lexer, Token, TokenType
from reqcraft.dsl.parser import Parser, parse_document, parse_file

__all__ = [
    "Lexer",
    "Parser",
    "Token",
    "TokenType",
    "parse_document",
    "parse_file",
]
