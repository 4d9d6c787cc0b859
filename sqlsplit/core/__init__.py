"""Core splitting machinery.

- tokenizer.py: lossless SQL lexer
- config.py: SplitterConfig options
- splitter.py: statement boundary state machine and post-processing
"""

from sqlsplit.core.config import SplitterConfig
from sqlsplit.core.splitter import (
    ParserState,
    StatementSplitter,
    split_sql_script,
    split_sql_script_with_placeholders,
)
from sqlsplit.core.tokenizer import Token, TokenType, tokenize

__all__ = (
    "ParserState",
    "SplitterConfig",
    "StatementSplitter",
    "Token",
    "TokenType",
    "split_sql_script",
    "split_sql_script_with_placeholders",
    "tokenize",
)
