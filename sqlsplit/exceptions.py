from typing import Any, Optional

__all__ = (
    "ImproperConfigurationError",
    "MissingDependencyError",
    "SQLSplitError",
    "SQLTokenizationError",
    "SerializationError",
)


class SQLSplitError(Exception):
    """Base exception class from which all sqlsplit exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLSplitError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLSplitError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlsplit[{install_package or package}]' to install sqlsplit with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class SQLTokenizationError(SQLSplitError):
    """The SQL source could not be turned into tokens."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues tokenizing SQL source."
        super().__init__(message)


class ImproperConfigurationError(SQLSplitError):
    """Improper Configuration error.

    Raised when a splitter option is unknown or has the wrong type.
    """


class SerializationError(SQLSplitError):
    """Encoding or decoding of an object failed."""
