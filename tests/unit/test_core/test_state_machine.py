"""Tests for the boundary state machine and its lookahead helpers."""

import pytest

from sqlsplit.core.splitter import (
    ParserState,
    advance,
    closes_block,
    is_block_separator,
    is_empty_statement,
    is_terminator,
    next_significant_token,
    opens_block,
    strip_terminator,
    trailing_comment_end,
)
from sqlsplit.core.tokenizer import Token, TokenType, tokenize


def _index_of(tokens: "list[Token]", value: str, occurrence: int = 0) -> int:
    matches = [index for index, token in enumerate(tokens) if token.value == value]
    return matches[occurrence]


def _run(sql: str) -> "list[tuple[ParserState, bool]]":
    tokens = tokenize(sql)
    state = ParserState()
    steps = []
    for index in range(len(tokens)):
        state, ends = advance(state, tokens, index)
        steps.append((state, ends))
    return steps


class TestParserState:
    """The immutable state record."""

    def test_defaults(self) -> None:
        """Test that a fresh state is at top level."""
        state = ParserState()

        assert state.block_depth == 0
        assert not state.in_procedural_header
        assert state.package_name is None
        assert not state.in_package
        assert not state.in_create_or_alter
        assert state.placeholders == 0
        assert state.can_terminate

    @pytest.mark.parametrize(
        "state",
        [ParserState(block_depth=1), ParserState(in_procedural_header=True), ParserState(package_name="pkg")],
    )
    def test_nested_states_cannot_terminate(self, state: ParserState) -> None:
        """Test that any open construct blocks terminators."""
        assert not state.can_terminate

    def test_create_or_alter_does_not_gate(self) -> None:
        """Test that the CREATE/ALTER flag is tracked only."""
        assert ParserState(in_create_or_alter=True).can_terminate


class TestNextSignificantToken:
    """Read-only lookahead."""

    def test_skips_whitespace_and_comments(self) -> None:
        """Test that insignificant tokens are stepped over."""
        tokens = tokenize("  -- c\n /* d */ OR REPLACE PACKAGE x")

        found = next_significant_token(tokens, 0)
        assert found is not None
        index, token = found
        assert token.value == "OR"
        assert tokens[index] is token

    def test_skip_words(self) -> None:
        """Test that caller-supplied words are skipped case-insensitively."""
        tokens = tokenize("or Replace PACKAGE BODY pkg")

        found = next_significant_token(tokens, 0, skip={"OR", "REPLACE"})
        assert found is not None
        assert found[1].value == "PACKAGE"

        found = next_significant_token(tokens, 0, skip={"OR", "REPLACE", "PACKAGE", "BODY"})
        assert found is not None
        assert found[1].value == "pkg"

    def test_only_words_are_skipped(self) -> None:
        """Test that quoted text equal to a skip word is still significant."""
        tokens = tokenize("'OR' x")

        found = next_significant_token(tokens, 0, skip={"OR"})
        assert found is not None
        assert found[1].type is TokenType.STRING_LITERAL

    def test_nothing_left(self) -> None:
        """Test that running out of tokens gives None."""
        tokens = tokenize("END -- done\n")

        assert next_significant_token(tokens, 1) is None
        assert next_significant_token(tokens, len(tokens)) is None

    def test_does_not_consume(self) -> None:
        """Test that the token list is untouched."""
        tokens = tokenize("a b c")
        before = list(tokens)

        next_significant_token(tokens, 1)
        assert tokens == before


class TestBlockPredicates:
    """BEGIN, CASE and END classification."""

    @pytest.mark.parametrize(
        ("sql", "expected"),
        [
            ("BEGIN NULL", True),
            ("BEGIN", True),
            ("BEGIN TRY", True),
            ("BEGIN TRANSACTION", False),
            ("begin work", False),
            ("BEGIN TRAN", False),
            ("BEGIN ISOLATION LEVEL READ COMMITTED", False),
            ("BEGIN READ WRITE", False),
            ("BEGIN;", False),
            ("BEGIN\n/", False),
            ("CASE WHEN", True),
            ("SELECT 1", False),
        ],
    )
    def test_opens_block(self, sql: str, expected: bool) -> None:
        """Test which leading tokens open a block."""
        assert opens_block(tokenize(sql), 0) is expected

    def test_case_after_end_does_not_open(self) -> None:
        """Test that the CASE of END CASE closes rather than opens."""
        tokens = tokenize("END CASE")

        assert not opens_block(tokens, _index_of(tokens, "CASE"))

    @pytest.mark.parametrize(
        ("sql", "expected"),
        [
            ("END", True),
            ("END;", True),
            ("END pkg", True),
            ("END CASE", True),
            ("END TRY", True),
            ("END IF", False),
            ("end loop", False),
            ("END WHILE", False),
            ("END REPEAT", False),
            ("END -- c\n IF", False),
            ("BEGIN", False),
        ],
    )
    def test_closes_block(self, sql: str, expected: bool) -> None:
        """Test which END tokens close a block."""
        assert closes_block(tokenize(sql), 0) is expected


class TestTerminators:
    """``;``, ``/`` and the combined pair."""

    def test_semicolon(self) -> None:
        """Test a plain terminator."""
        tokens = tokenize("SELECT 1;")

        assert is_terminator(tokens, _index_of(tokens, ";"))
        assert not is_terminator(tokens, 0)

    def test_combined_pair(self) -> None:
        """Test that only the ``/`` of ``;`` + ``/`` terminates."""
        tokens = tokenize("END;\n/")

        assert not is_terminator(tokens, _index_of(tokens, ";"))
        assert is_terminator(tokens, _index_of(tokens, "/"))

    def test_pair_on_one_line(self) -> None:
        """Test ``END;/`` written without a newline."""
        tokens = tokenize("END;/")

        assert is_block_separator(tokens, _index_of(tokens, "/"))
        assert not is_terminator(tokens, _index_of(tokens, ";"))

    @pytest.mark.parametrize(
        ("sql", "expected"),
        [
            ("/", True),
            ("END\n/", True),
            ("END\n  /  ", True),
            ("END -- c\n/", True),
            ("SELECT 4 / 2", False),
            ("SELECT a/b", False),
            ("SELECT a /* c */ / b", False),
        ],
    )
    def test_block_separator(self, sql: str, expected: bool) -> None:
        """Test when ``/`` separates blocks rather than dividing."""
        tokens = tokenize(sql)

        assert is_block_separator(tokens, _index_of(tokens, "/")) is expected

    def test_only_slash_is_a_separator(self) -> None:
        """Test that other tokens are never separators."""
        tokens = tokenize(";")

        assert not is_block_separator(tokens, 0)

    def test_semicolon_before_division(self) -> None:
        """Test that a division after ``;`` on the same line is not a separator pair."""
        tokens = tokenize("SELECT 1; SELECT 4 / 2")

        assert is_terminator(tokens, _index_of(tokens, ";"))


class TestAdvance:
    """Single-token state transitions."""

    def test_block_open_and_close(self) -> None:
        """Test depth tracking through a block."""
        steps = _run("BEGIN NULL; END;")

        assert steps[0] == (ParserState(block_depth=1), False)
        assert steps[3] == (ParserState(block_depth=1), False)
        assert steps[-2] == (ParserState(), False)
        assert steps[-1] == (ParserState(), True)

    def test_declare_sets_header_until_begin(self) -> None:
        """Test that BEGIN moves a header into its block."""
        tokens = tokenize("DECLARE x NUMBER; BEGIN")

        state, _ = advance(ParserState(), tokens, 0)
        assert state.in_procedural_header

        state, ends = advance(state, tokens, _index_of(tokens, ";"))
        assert not ends

        state, _ = advance(state, tokens, _index_of(tokens, "BEGIN"))
        assert state == ParserState(block_depth=1)

    def test_create_package(self) -> None:
        """Test package name capture."""
        tokens = tokenize("CREATE OR REPLACE PACKAGE BODY billing AS")

        state, ends = advance(ParserState(), tokens, 0)
        assert not ends
        assert state.in_create_or_alter
        assert state.package_name == "billing"
        assert state.in_package

    def test_end_package_clears_scope(self) -> None:
        """Test that END <name> closes the package."""
        tokens = tokenize("END billing")
        state = ParserState(package_name="billing", in_procedural_header=True)

        state, _ = advance(state, tokens, 0)
        assert state == ParserState()

    def test_create_routine_sets_header(self) -> None:
        """Test CREATE FUNCTION and CREATE PROCEDURE."""
        tokens = tokenize("CREATE OR REPLACE FUNCTION f")

        state, _ = advance(ParserState(), tokens, 0)
        state, _ = advance(state, tokens, _index_of(tokens, "FUNCTION"))
        assert state.in_procedural_header
        assert state.in_create_or_alter
        assert not state.in_package

    def test_create_type_body_opens_block(self) -> None:
        """Test that CREATE TYPE BODY wraps its methods in one block."""
        tokens = tokenize("CREATE OR REPLACE TYPE BODY person_t AS")

        state, ends = advance(ParserState(), tokens, 0)
        assert not ends
        assert state == ParserState(block_depth=1, in_create_or_alter=True)

    @pytest.mark.parametrize(
        ("depth", "expected"),
        [(1, True), (0, False)],
        ids=["type_body", "type_spec"],
    )
    def test_member_method_header(self, depth: int, expected: bool) -> None:
        """Test that MEMBER FUNCTION starts a header only inside a type body."""
        tokens = tokenize("MEMBER FUNCTION age")

        state, _ = advance(ParserState(block_depth=depth), tokens, _index_of(tokens, "FUNCTION"))
        assert state.in_procedural_header is expected

    def test_quoted_body_clears_header(self) -> None:
        """Test that a string after AS ends the header."""
        tokens = tokenize("AS $$ SELECT 1; $$")
        state = ParserState(in_procedural_header=True)

        state, _ = advance(state, tokens, _index_of(tokens, "$$ SELECT 1; $$"))
        assert not state.in_procedural_header

    def test_placeholder_counted(self) -> None:
        """Test that ``?`` increments the counter."""
        tokens = tokenize("?")

        assert advance(ParserState(placeholders=2), tokens, 0) == (ParserState(placeholders=3), False)

    def test_terminator_resets_statement_state(self) -> None:
        """Test that a confirmed terminator resets the per-statement fields."""
        tokens = tokenize(";")

        state, ends = advance(ParserState(placeholders=2, in_create_or_alter=True), tokens, 0)
        assert ends
        assert state == ParserState()

    def test_terminator_inside_block(self) -> None:
        """Test that a terminator in a block leaves the state alone."""
        tokens = tokenize(";")
        state = ParserState(block_depth=2, placeholders=1)

        assert advance(state, tokens, 0) == (state, False)

    def test_input_state_is_not_mutated(self) -> None:
        """Test that transitions return new values."""
        tokens = tokenize("BEGIN x")
        state = ParserState()

        advance(state, tokens, 0)
        assert state == ParserState()


class TestTrailingComments:
    """Comments sharing a line with a terminator."""

    @pytest.mark.parametrize(
        ("sql", "expected_value"),
        [
            ("SELECT 1; -- c\nSELECT 2;", "-- c"),
            ("SELECT 1;--c", "--c"),
            ("SELECT 1; /* a */ /* b */ -- c", "-- c"),
            ("SELECT 1; /* a */\nSELECT 2;", "/* a */"),
            ("SELECT 1;\n-- c", ";"),
            ("SELECT 1; SELECT 2;", ";"),
            ("SELECT 1; /* multi\nline */", ";"),
        ],
    )
    def test_trailing_comment_end(self, sql: str, expected_value: str) -> None:
        """Test how far past a terminator the statement extends."""
        tokens = tokenize(sql)

        end = trailing_comment_end(tokens, _index_of(tokens, ";"))
        assert tokens[end].value == expected_value


class TestPostProcessingHelpers:
    """Empty detection and terminator removal."""

    @pytest.mark.parametrize(
        ("statement", "expected"),
        [
            ("", True),
            ("  \n\t", True),
            (" ;\n/ ", True),
            ("-- c", False),
            ("/* c */", False),
            ("SELECT 1;", False),
        ],
    )
    def test_is_empty_statement(self, statement: str, expected: bool) -> None:
        """Test that only whitespace and terminators count as empty."""
        assert is_empty_statement(statement) is expected

    @pytest.mark.parametrize(
        ("statement", "expected"),
        [
            ("SELECT 1;", "SELECT 1"),
            ("\n SELECT 1 ; ", "\n SELECT 1  "),
            ("END;\n/", "END\n"),
            ("END\n/", "END\n"),
            ("SELECT 1; -- c", "SELECT 1 -- c"),
            ("SELECT 1", "SELECT 1"),
            ("SELECT 4 / 2", "SELECT 4 / 2"),
            ("SELECT ';'", "SELECT ';'"),
            ("-- only; a comment", "-- only; a comment"),
            ("", ""),
        ],
    )
    def test_strip_terminator(self, statement: str, expected: str) -> None:
        """Test that only the terminator characters are removed."""
        assert strip_terminator(statement) == expected
