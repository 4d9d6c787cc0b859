"""Splitter options.

A :class:`SplitterConfig` is built once and handed to the splitter; it is never
mutated, so one splitter can serve many calls without carrying state between
them. Use :meth:`SplitterConfig.replace` to derive a variant.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Final

from sqlsplit.exceptions import ImproperConfigurationError

__all__ = ("SPLITTER_OPTIONS", "SplitterConfig")


@dataclass(frozen=True)
class SplitterConfig:
    """Post-processing options for a split.

    Every option defaults to ``False``, which produces statements ready to be
    sent to a database: no trailing terminator, no surrounding whitespace, no
    comments and no empty statements. Turning all four on makes the split
    lossless: joining the statements gives back the input verbatim.

    Attributes:
        keep_terminator: Keep the trailing ``;``, ``/`` or ``;`` + ``/`` of each statement.
        keep_extra_spaces: Keep leading and trailing whitespace of each statement.
        keep_comments: Keep comments in the statement they belong to.
        keep_empty_statements: Keep statements made only of whitespace and terminators.
    """

    keep_terminator: bool = False
    keep_extra_spaces: bool = False
    keep_comments: bool = False
    keep_empty_statements: bool = False

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if not isinstance(value, bool):
                msg = f"Option {field.name!r} must be a bool, got {type(value).__name__}"
                raise ImproperConfigurationError(msg)

    @classmethod
    def verbatim(cls) -> "SplitterConfig":
        """Config that keeps everything, so the split round-trips exactly."""
        return cls(keep_terminator=True, keep_extra_spaces=True, keep_comments=True, keep_empty_statements=True)

    def replace(self, **kwargs: Any) -> "SplitterConfig":
        """Return a copy with the given options changed.

        Args:
            **kwargs: Options to update

        Raises:
            ImproperConfigurationError: If an option name is unknown.

        Returns:
            New SplitterConfig instance with updated options
        """
        for key in kwargs:
            if key not in SPLITTER_OPTIONS:
                msg = f"{key!r} is not a field in {type(self).__name__}"
                raise ImproperConfigurationError(msg)
        return replace(self, **kwargs)

    def to_dict(self) -> "dict[str, bool]":
        return {name: getattr(self, name) for name in SPLITTER_OPTIONS}


SPLITTER_OPTIONS: Final = tuple(field.name for field in fields(SplitterConfig))
