"""Lossless SQL lexer.

Turns SQL source into a flat list of :class:`Token` objects. Every character of
the input belongs to exactly one token, so joining the token values gives back
the original text. The lexer only classifies lexical shape (comments, literals,
words, punctuation); it knows nothing about statements.
"""

import re
from enum import Enum
from re import Pattern
from typing import Any, Final, Optional

from mypy_extensions import mypyc_attr

from sqlsplit.exceptions import SQLTokenizationError

__all__ = (
    "BLOCK_SEPARATOR",
    "PLACEHOLDER",
    "TERMINATOR",
    "Token",
    "TokenType",
    "is_comment",
    "is_significant",
    "tokenize",
)

TERMINATOR: Final = ";"
BLOCK_SEPARATOR: Final = "/"
PLACEHOLDER: Final = "?"

TOKEN_SLOTS: Final = ("type", "value", "line", "column", "position")


class TokenType(Enum):
    """Types of tokens recognized by the SQL lexer."""

    COMMENT_LINE = "COMMENT_LINE"
    COMMENT_BLOCK = "COMMENT_BLOCK"
    STRING_LITERAL = "STRING_LITERAL"
    QUOTED_IDENTIFIER = "QUOTED_IDENTIFIER"
    PLACEHOLDER = "PLACEHOLDER"
    TERMINATOR = "TERMINATOR"
    BLOCK_SEPARATOR = "BLOCK_SEPARATOR"
    WORD = "WORD"
    WHITESPACE = "WHITESPACE"
    OTHER = "OTHER"


COMMENT_TYPES: Final = frozenset({TokenType.COMMENT_LINE, TokenType.COMMENT_BLOCK})
INSIGNIFICANT_TYPES: Final = frozenset({TokenType.WHITESPACE, *COMMENT_TYPES})


@mypyc_attr(allow_interpreted_subclasses=True)
class Token:
    """A verbatim slice of the SQL source."""

    __slots__ = TOKEN_SLOTS

    def __init__(self, type: TokenType, value: str, line: int, column: int, position: int) -> None:
        self.type = type
        self.value = value
        self.line = line
        self.column = column
        self.position = position

    def __repr__(self) -> str:
        return f"Token({self.type.value}, {self.value!r}, {self.line}:{self.column})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return (self.type, self.value, self.position) == (other.type, other.value, other.position)

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.position))


# Order matters: comments and quoted text must win over the punctuation they contain.
_TOKEN_PATTERNS: Final[tuple[tuple[TokenType, str], ...]] = (
    (TokenType.COMMENT_LINE, r"--[^\n]*"),
    (TokenType.COMMENT_BLOCK, r"/\*[\s\S]*?(?:\*/|\Z)"),
    # '' and backslash escapes (MySQL, E'...') both keep the string open
    (TokenType.STRING_LITERAL, r"[NnEeXxBb]?'(?:[^'\\]|''|\\.?)*(?:'|\Z)"),
    (TokenType.STRING_LITERAL, r"\$(?P<tag>[A-Za-z_][A-Za-z0-9_]*|)\$[\s\S]*?(?:\$(?P=tag)\$|\Z)"),
    (TokenType.QUOTED_IDENTIFIER, r'"(?:[^"]|"")*(?:"|\Z)|`(?:[^`]|``)*(?:`|\Z)'),
    # [name] only where an identifier can start; a[1] and (arr)[1] are subscripts
    (TokenType.QUOTED_IDENTIFIER, r'(?<![\w\])"`$])\[[^\]]*(?:\]|\Z)'),
    (TokenType.PLACEHOLDER, re.escape(PLACEHOLDER)),
    (TokenType.TERMINATOR, re.escape(TERMINATOR)),
    (TokenType.BLOCK_SEPARATOR, re.escape(BLOCK_SEPARATOR)),
    (TokenType.WORD, r"[^\W\d][\w$#]*|[0-9]+(?:\.[0-9]*)?(?:[eE][+-]?[0-9]+)?"),
    (TokenType.WHITESPACE, r"\s+"),
    (TokenType.OTHER, r"."),
)

_COMPILED_PATTERNS: Final[tuple[tuple[TokenType, Pattern[str]], ...]] = tuple(
    (token_type, re.compile(pattern, re.DOTALL)) for token_type, pattern in _TOKEN_PATTERNS
)


def _match_at(sql: str, pos: int) -> "tuple[TokenType, str]":
    for token_type, pattern in _COMPILED_PATTERNS:
        match = pattern.match(sql, pos)
        if match and match.end() > pos:
            return token_type, match.group(0)
    return TokenType.OTHER, sql[pos]


def tokenize(sql: str) -> list[Token]:
    """Tokenize SQL source into a lossless list of tokens.

    Unterminated comments and quoted literals run to the end of the input
    rather than failing, so any string can be tokenized.

    Args:
        sql: The SQL source to tokenize.

    Raises:
        SQLTokenizationError: If ``sql`` is not a string.

    Returns:
        The tokens in source order.
    """
    if not isinstance(sql, str):
        msg = f"Expected SQL source as str, got {type(sql).__name__}"
        raise SQLTokenizationError(msg)

    tokens: list[Token] = []
    pos = 0
    line = 1
    line_start = 0
    length = len(sql)

    while pos < length:
        token_type, value = _match_at(sql, pos)
        tokens.append(Token(type=token_type, value=value, line=line, column=pos - line_start + 1, position=pos))

        newlines = value.count("\n")
        if newlines:
            line += newlines
            line_start = pos + value.rfind("\n") + 1
        pos += len(value)

    return tokens


def is_comment(token: Token) -> bool:
    return token.type in COMMENT_TYPES


def is_significant(token: Optional[Token]) -> bool:
    """Return True for tokens that are neither whitespace nor comments."""
    return token is not None and token.type not in INSIGNIFICANT_TYPES
