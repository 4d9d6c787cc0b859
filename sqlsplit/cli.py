from typing import TYPE_CHECKING, Optional, TextIO

if TYPE_CHECKING:
    from click import Command

__all__ = ("get_sqlsplit_command", "main")


def get_sqlsplit_command() -> "Command":
    """Get the sqlsplit CLI command.

    Raises:
        MissingDependencyError: If the `click` package is not installed.

    Returns:
        The sqlsplit command.
    """
    from sqlsplit.exceptions import MissingDependencyError

    try:
        import rich_click as click
    except ImportError:
        try:
            import click  # type: ignore[no-redef]
        except ImportError as e:
            raise MissingDependencyError(package="click", install_package="cli") from e

    @click.command(name="sqlsplit")
    @click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
    @click.option("--keep-terminator", is_flag=True, default=False, help="Keep the trailing ; or / of each statement.")
    @click.option("--keep-extra-spaces", is_flag=True, default=False, help="Keep whitespace around each statement.")
    @click.option("--keep-comments", is_flag=True, default=False, help="Keep comments in the statements.")
    @click.option("--keep-empty-statements", is_flag=True, default=False, help="Keep statements with no content.")
    @click.option(
        "--placeholders", is_flag=True, default=False, help="Show the number of ? placeholders per statement."
    )
    @click.option("--json", "as_json", is_flag=True, default=False, help="Print the statements as a JSON array.")
    @click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
        default=None,
        help="Enable library logging on stderr at this level.",
    )
    @click.option(
        "--log-format",
        type=click.Choice(["simple", "structured"], case_sensitive=False),
        default="simple",
        help="Log as plain text or as JSON lines.",
    )
    @click.pass_context
    def sqlsplit_command(
        ctx: "click.Context",
        source: TextIO,
        keep_terminator: bool,
        keep_extra_spaces: bool,
        keep_comments: bool,
        keep_empty_statements: bool,
        placeholders: bool,
        as_json: bool,
        log_level: Optional[str],
        log_format: str,
    ) -> None:
        """Split the SQL script in SOURCE (default: stdin) into its statements."""
        from rich.console import Console

        from sqlsplit._serialization import encode_json
        from sqlsplit.core.config import SplitterConfig
        from sqlsplit.core.splitter import StatementSplitter
        from sqlsplit.exceptions import SQLSplitError
        from sqlsplit.utils.logging import configure_logging

        console = Console(highlight=False, soft_wrap=True)
        if log_level:
            configure_logging(level=log_level, format_style=log_format.lower())

        config = SplitterConfig(
            keep_terminator=keep_terminator,
            keep_extra_spaces=keep_extra_spaces,
            keep_comments=keep_comments,
            keep_empty_statements=keep_empty_statements,
        )
        try:
            statements, counts = StatementSplitter(config).split_with_placeholders(source.read())
        except SQLSplitError as e:
            console.print(f"[red]Error splitting SQL: {e}[/]")
            ctx.exit(1)
            return

        if as_json:
            if placeholders:
                payload = [
                    {"statement": statement, "placeholders": count} for statement, count in zip(statements, counts)
                ]
                click.echo(encode_json(payload))
            else:
                click.echo(encode_json(statements))
            return

        for number, (statement, count) in enumerate(zip(statements, counts), start=1):
            title = f"Statement {number}"
            if placeholders:
                title = f"{title} ({count} placeholder{'' if count == 1 else 's'})"
            console.rule(title)
            console.print(statement, markup=False)

    return sqlsplit_command


def main() -> None:
    """Console script entry point."""
    get_sqlsplit_command()()
