"""SQL script statement splitter.

Splits a SQL script into its atomic statements with a single left-to-right pass
over the lexer's tokens. A ``;`` or ``/`` only ends a statement when it is not
nested in a procedural construct:

- ``BEGIN ... END`` blocks, at any depth (``BEGIN TRANSACTION`` and friends
  are not blocks);
- ``CASE ... END`` expressions and ``CASE ... END CASE`` statements;
- procedural headers, from ``DECLARE`` or ``CREATE FUNCTION``/``PROCEDURE``
  up to the ``BEGIN`` of their body, or up to a body quoted after ``AS``;
- ``CREATE [OR REPLACE] PACKAGE [BODY] <name> ... END <name>``;
- ``CREATE [OR REPLACE] TYPE BODY ... END``, whose ``MEMBER``/``STATIC``
  methods are procedural headers of their own.

Quoted text and comments never end a statement because the lexer hands them
over as single tokens.

The splitter is not a validating parser. Malformed input gives a best-effort
split and never raises.
"""

import logging
import re
from collections.abc import Collection, Sequence
from typing import Final, NamedTuple, Optional

from mypy_extensions import mypyc_attr
from typing_extensions import TypeAlias

from sqlsplit.core.config import SplitterConfig
from sqlsplit.core.tokenizer import Token, TokenType, is_comment, is_significant, tokenize
from sqlsplit.utils.logging import get_logger, log_with_context

__all__ = (
    "ParserState",
    "StatementSplitter",
    "advance",
    "closes_block",
    "is_block_separator",
    "is_empty_statement",
    "is_terminator",
    "next_significant_token",
    "opens_block",
    "split_sql_script",
    "split_sql_script_with_placeholders",
    "strip_terminator",
    "trailing_comment_end",
)

logger = get_logger("sqlsplit.core.splitter")

TRANSACTION_WORDS: Final = frozenset({"WORK", "TRAN", "TRANSACTION", "ISOLATION", "READ"})
CONTINUATION_WORDS: Final = frozenset({"IF", "LOOP", "WHILE", "REPEAT"})
DECLARE_WORD: Final = "DECLARE"
ROUTINE_WORDS: Final = frozenset({"FUNCTION", "PROCEDURE"})
METHOD_WORDS: Final = frozenset({"MEMBER", "STATIC", "CONSTRUCTOR"})
CREATE_OR_ALTER_WORDS: Final = frozenset({"CREATE", "ALTER"})
EDITION_WORDS: Final = frozenset({"EDITIONABLE", "NONEDITIONABLE"})
PACKAGE_PREFIX_WORDS: Final = frozenset({"OR", "REPLACE", *EDITION_WORDS})
PACKAGE_NAME_SKIP_WORDS: Final = frozenset({*PACKAGE_PREFIX_WORDS, "PACKAGE", "BODY"})
TERMINATOR_TYPES: Final = frozenset({TokenType.TERMINATOR, TokenType.BLOCK_SEPARATOR})

_CONTENT_RE: Final = re.compile(r"[^\s;/]")

SPLITTER_SLOTS: Final = ("_config",)

RawEntry: TypeAlias = tuple[str, int]


class ParserState(NamedTuple):
    """Nesting state carried from one token to the next.

    Transitions never mutate a state; :func:`advance` returns a new one.
    """

    block_depth: int = 0
    in_procedural_header: bool = False
    package_name: Optional[str] = None
    in_create_or_alter: bool = False
    placeholders: int = 0

    @property
    def in_package(self) -> bool:
        return self.package_name is not None

    @property
    def can_terminate(self) -> bool:
        """Whether a terminator seen now would end the current statement."""
        return self.block_depth == 0 and not self.in_procedural_header and not self.in_package


def _keyword(token: Token) -> str:
    return token.value.upper() if token.type is TokenType.WORD else ""


def next_significant_token(
    tokens: Sequence[Token], start: int, skip: Collection[str] = ()
) -> Optional[tuple[int, Token]]:
    """Find the first significant token at or after ``start`` without consuming anything.

    Args:
        tokens: The full token list.
        start: Index to start scanning from.
        skip: Upper-case words to step over as if they were whitespace.

    Returns:
        ``(index, token)`` of the first qualifying token, or None when the tokens run out.
    """
    for index in range(start, len(tokens)):
        token = tokens[index]
        if not is_significant(token):
            continue
        if skip and _keyword(token) in skip:
            continue
        return index, token
    return None


def _previous_significant_token(
    tokens: Sequence[Token], end: int, skip: Collection[str] = ()
) -> Optional[tuple[int, Token]]:
    for index in range(end - 1, -1, -1):
        token = tokens[index]
        if is_significant(token) and not (skip and _keyword(token) in skip):
            return index, token
    return None


def opens_block(tokens: Sequence[Token], index: int) -> bool:
    """Check whether the token at ``index`` opens a nested block.

    ``BEGIN`` opens a block unless it starts a transaction (``BEGIN WORK``,
    ``BEGIN TRANSACTION``, ``BEGIN;`` ...). ``CASE`` opens one unless it is the
    tail of an ``END CASE``.
    """
    keyword = _keyword(tokens[index])
    if keyword == "BEGIN":
        following = next_significant_token(tokens, index + 1)
        if following is None:
            return True
        _, token = following
        return token.type not in TERMINATOR_TYPES and _keyword(token) not in TRANSACTION_WORDS
    if keyword == "CASE":
        previous = _previous_significant_token(tokens, index)
        return previous is None or _keyword(previous[1]) != "END"
    return False


def closes_block(tokens: Sequence[Token], index: int) -> bool:
    """Check whether the token at ``index`` is an ``END`` that closes a block.

    ``END IF``, ``END LOOP``, ``END WHILE`` and ``END REPEAT`` close control
    statements, not blocks.
    """
    if _keyword(tokens[index]) != "END":
        return False
    following = next_significant_token(tokens, index + 1)
    return following is None or _keyword(following[1]) not in CONTINUATION_WORDS


def is_block_separator(tokens: Sequence[Token], index: int) -> bool:
    """Check whether the ``/`` at ``index`` separates blocks rather than dividing.

    A separator is the first significant token of its line, or directly
    follows a ``;`` (``END;/``).
    """
    if tokens[index].type is not TokenType.BLOCK_SEPARATOR:
        return False
    for pos in range(index - 1, -1, -1):
        token = tokens[pos]
        if is_significant(token):
            return token.type is TokenType.TERMINATOR
        if "\n" in token.value:
            return True
    return True


def is_terminator(tokens: Sequence[Token], index: int) -> bool:
    """Check whether the token at ``index`` is a statement terminator.

    A block separator ``/`` always is. ``;`` is too, unless the next
    significant token is a block separator: the pair then acts as one
    terminator, closed by the ``/``.
    """
    token = tokens[index]
    if token.type is TokenType.BLOCK_SEPARATOR:
        return is_block_separator(tokens, index)
    if token.type is not TokenType.TERMINATOR:
        return False
    following = next_significant_token(tokens, index + 1)
    return following is None or not is_block_separator(tokens, following[0])


def _package_name(tokens: Sequence[Token], index: int) -> Optional[str]:
    following = next_significant_token(tokens, index + 1, skip=PACKAGE_PREFIX_WORDS)
    if following is None or _keyword(following[1]) != "PACKAGE":
        return None
    name = next_significant_token(tokens, following[0] + 1, skip=PACKAGE_NAME_SKIP_WORDS)
    if name is None:
        return None
    name_index, name_token = name
    # schema.package: END repeats only the unqualified name
    while True:
        dot = next_significant_token(tokens, name_index + 1)
        if dot is None or dot[1].value != ".":
            break
        qualified = next_significant_token(tokens, dot[0] + 1)
        if qualified is None:
            break
        name_index, name_token = qualified
    return name_token.value


def _creates_routine(tokens: Sequence[Token], index: int) -> bool:
    """``CREATE [OR REPLACE] FUNCTION`` and the like, not ``DROP FUNCTION`` or ``EXECUTE FUNCTION``."""
    previous = _previous_significant_token(tokens, index, skip=PACKAGE_PREFIX_WORDS)
    return previous is not None and _keyword(previous[1]) == "CREATE"


def _creates_type_body(tokens: Sequence[Token], index: int) -> bool:
    """``CREATE [OR REPLACE] TYPE BODY``: method bodies wrapped in one closing ``END``."""
    following = next_significant_token(tokens, index + 1, skip=PACKAGE_PREFIX_WORDS)
    if following is None or _keyword(following[1]) != "TYPE":
        return False
    body = next_significant_token(tokens, following[0] + 1)
    return body is not None and _keyword(body[1]) == "BODY"


def _opens_header(state: ParserState, tokens: Sequence[Token], index: int) -> bool:
    keyword = _keyword(tokens[index])
    if keyword == DECLARE_WORD:
        return True
    if keyword not in ROUTINE_WORDS:
        return False
    if state.in_package or _creates_routine(tokens, index):
        return True
    # MEMBER FUNCTION inside a type body; a type spec lists methods at depth 0 without bodies
    previous = _previous_significant_token(tokens, index)
    return state.block_depth > 0 and previous is not None and _keyword(previous[1]) in METHOD_WORDS


def _is_quoted_body(tokens: Sequence[Token], index: int) -> bool:
    """``AS $$ ... $$`` or ``AS '...'``: a routine body given as a string, with no BEGIN to wait for."""
    if tokens[index].type is not TokenType.STRING_LITERAL:
        return False
    previous = _previous_significant_token(tokens, index)
    return previous is not None and _keyword(previous[1]) == "AS"


def advance(state: ParserState, tokens: Sequence[Token], index: int) -> tuple[ParserState, bool]:
    """Apply the token at ``index`` to ``state``.

    Args:
        state: State before the token.
        tokens: The full token list, for lookahead.
        index: Position of the token being consumed.

    Returns:
        The state after the token, and whether the token ends the current
        statement. When it does, the returned state is already reset for the
        next statement.
    """
    token = tokens[index]
    keyword = _keyword(token)

    if opens_block(tokens, index):
        if keyword == "BEGIN":
            return state._replace(block_depth=state.block_depth + 1, in_procedural_header=False), False
        return state._replace(block_depth=state.block_depth + 1), False

    if keyword in CREATE_OR_ALTER_WORDS:
        if keyword == "CREATE" and _creates_type_body(tokens, index):
            return state._replace(in_create_or_alter=True, block_depth=state.block_depth + 1), False
        package_name = _package_name(tokens, index) if keyword == "CREATE" else None
        if package_name is not None:
            return state._replace(in_create_or_alter=True, package_name=package_name), False
        return state._replace(in_create_or_alter=True), False

    if _opens_header(state, tokens, index):
        return state._replace(in_procedural_header=True), False

    if state.in_procedural_header and _is_quoted_body(tokens, index):
        return state._replace(in_procedural_header=False), False

    if closes_block(tokens, index):
        block_depth = max(state.block_depth - 1, 0)
        following = next_significant_token(tokens, index + 1)
        if state.in_package and following is not None and following[1].value == state.package_name:
            # Declarations of a package spec have no BEGIN to clear the header flag.
            return state._replace(block_depth=block_depth, package_name=None, in_procedural_header=False), False
        return state._replace(block_depth=block_depth), False

    if token.type is TokenType.PLACEHOLDER:
        return state._replace(placeholders=state.placeholders + 1), False

    if state.can_terminate and is_terminator(tokens, index):
        return state._replace(in_create_or_alter=False, placeholders=0), True

    return state, False


def trailing_comment_end(tokens: Sequence[Token], index: int) -> int:
    """Return the index of the last comment sharing a line with the terminator at ``index``.

    A comment written after a terminator on the same line annotates the
    statement it follows, so it is kept with that statement. Returns ``index``
    when no such comment exists.
    """
    end = index
    pos = index + 1
    while pos < len(tokens):
        token = tokens[pos]
        if token.type is TokenType.WHITESPACE and "\n" not in token.value:
            pos += 1
            continue
        if token.type is TokenType.COMMENT_LINE:
            return pos
        if token.type is TokenType.COMMENT_BLOCK and "\n" not in token.value:
            end = pos
            pos += 1
            continue
        break
    return end


def is_empty_statement(statement: str) -> bool:
    """A statement is empty when it holds nothing but whitespace and terminators."""
    return _CONTENT_RE.search(statement) is None


def strip_terminator(statement: str) -> str:
    """Remove the trailing ``;``, ``/`` or ``;`` + ``/`` from a statement.

    Only the terminator characters themselves are removed. Comments and
    whitespace around them stay, for the whitespace trim to handle.
    """
    tokens = tokenize(statement)
    last = _previous_significant_token(tokens, len(tokens))
    if last is None or not is_terminator(tokens, last[0]):
        return statement

    last_index, last_token = last
    cuts = [last_token.position]
    if last_token.type is TokenType.BLOCK_SEPARATOR:
        previous = _previous_significant_token(tokens, last_index)
        if previous is not None and previous[1].type is TokenType.TERMINATOR:
            cuts.insert(0, previous[1].position)

    pieces = []
    start = 0
    for cut in cuts:
        pieces.append(statement[start:cut])
        start = cut + 1
    pieces.append(statement[start:])
    return "".join(pieces)


@mypyc_attr(allow_interpreted_subclasses=False)
class StatementSplitter:
    """Splits SQL scripts into individual statements using a token-driven state machine.

    Example:
        >>> splitter = StatementSplitter()
        >>> splitter.split("CREATE TABLE t (a); INSERT INTO t VALUES (1);")
        ['CREATE TABLE t (a)', 'INSERT INTO t VALUES (1)']
    """

    __slots__ = SPLITTER_SLOTS

    def __init__(self, config: Optional[SplitterConfig] = None, **options: bool) -> None:
        """Initialize the splitter.

        Args:
            config: Options for every split made by this instance. Defaults to
                all options off.
            **options: Individual options, applied on top of ``config``.
        """
        config = config or SplitterConfig()
        self._config = config.replace(**options) if options else config

    @property
    def config(self) -> SplitterConfig:
        return self._config

    @config.setter
    def config(self, config: SplitterConfig) -> None:
        self._config = config

    def split(self, sql: str) -> list[str]:
        """Split ``sql`` into its atomic statements, in source order."""
        statements, _ = self.split_with_placeholders(sql)
        return statements

    def split_with_placeholders(self, sql: str) -> tuple[list[str], list[int]]:
        """Split ``sql`` and count the ``?`` placeholders of each statement.

        Args:
            sql: The SQL script to split.

        Returns:
            The statements, and a parallel list holding the number of
            positional placeholders found in each of them.
        """
        config = self._config
        entries = self._split_raw(sql)

        if not config.keep_empty_statements:
            entries = [entry for entry in entries if not is_empty_statement(entry[0])]
        if not config.keep_terminator:
            entries = [(strip_terminator(statement), count) for statement, count in entries]
        if not config.keep_extra_spaces:
            entries = [(statement.strip(), count) for statement, count in entries]

        log_with_context(
            logger,
            logging.DEBUG,
            f"Split {len(sql)} characters into {len(entries)} statements",
            characters=len(sql),
            statements=len(entries),
            placeholders=sum(count for _, count in entries),
        )
        return [statement for statement, _ in entries], [count for _, count in entries]

    def _split_raw(self, sql: str) -> list[RawEntry]:
        """Run the state machine, returning one entry per terminator plus the remainder.

        Joining the entry texts reproduces ``sql`` exactly when comments are kept.
        """
        tokens = tokenize(sql)
        keep_comments = self._config.keep_comments
        entries: list[RawEntry] = []
        current: list[str] = []
        state = ParserState()

        index = 0
        while index < len(tokens):
            token = tokens[index]
            if keep_comments or not is_comment(token):
                current.append(token.value)

            next_state, ends_statement = advance(state, tokens, index)
            if ends_statement:
                last = trailing_comment_end(tokens, index)
                for trailing in tokens[index + 1 : last + 1]:
                    if keep_comments or not is_comment(trailing):
                        current.append(trailing.value)
                entries.append(("".join(current), state.placeholders))
                current = []
                index = last
            state = next_state
            index += 1

        entries.append(("".join(current), state.placeholders))

        if not state.can_terminate:
            log_with_context(
                logger,
                logging.DEBUG,
                "Script ended inside an open construct",
                block_depth=state.block_depth,
                in_procedural_header=state.in_procedural_header,
                package_name=state.package_name,
            )
        return entries


def split_sql_script(script: str, config: Optional[SplitterConfig] = None, **options: bool) -> list[str]:
    """Split a SQL script into statements.

    Args:
        script: The SQL script to split
        config: Splitter options
        **options: Individual options applied on top of ``config``

    Returns:
        List of individual SQL statements
    """
    return StatementSplitter(config, **options).split(script)


def split_sql_script_with_placeholders(
    script: str, config: Optional[SplitterConfig] = None, **options: bool
) -> tuple[list[str], list[int]]:
    """Split a SQL script into statements and per-statement placeholder counts."""
    return StatementSplitter(config, **options).split_with_placeholders(script)
