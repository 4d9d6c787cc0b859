"""sqlsplit: split SQL scripts into atomic statements."""

from sqlsplit import core, exceptions, utils
from sqlsplit.__metadata__ import __version__
from sqlsplit.core.config import SplitterConfig
from sqlsplit.core.splitter import StatementSplitter, split_sql_script, split_sql_script_with_placeholders
from sqlsplit.exceptions import ImproperConfigurationError, SQLSplitError, SQLTokenizationError

__all__ = (
    "ImproperConfigurationError",
    "SQLSplitError",
    "SQLTokenizationError",
    "SplitterConfig",
    "StatementSplitter",
    "__version__",
    "core",
    "exceptions",
    "split_sql_script",
    "split_sql_script_with_placeholders",
    "utils",
)
