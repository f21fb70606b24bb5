"""CLI entry point."""

from __future__ import annotations

import asyncio
import sys


def main() -> None:
    """Main entry point for the CLI."""
    import importlib.util

    if importlib.util.find_spec("rich_click") is None:
        print("CLI dependencies not installed. Run: pip install luasnap[cli]")
        sys.exit(1)

    cli = build_cli()
    cli()


def build_cli():
    """CLI definition."""
    import rich_click as click

    click.rich_click.USE_RICH_MARKUP = True
    click.rich_click.USE_MARKDOWN = True
    click.rich_click.SHOW_ARGUMENTS = True
    click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
    click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
    click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
    click.rich_click.MAX_WIDTH = 100

    def session_options(fn):
        fn = click.option(
            "--json", "-j", "json_output", is_flag=True, help="Print responses as JSON"
        )(fn)
        fn = click.option(
            "--sandbox/--no-sandbox",
            default=None,
            help="Remove io, os, debug and module loading from the Lua globals",
        )(fn)
        fn = click.option(
            "--unsupported",
            type=click.Choice(["opaque", "error"]),
            default=None,
            help="How to treat functions, userdata and coroutines in results",
        )(fn)
        return fn

    def build_config(sandbox: bool | None, unsupported: str | None):
        from luasnap.core.config import SessionConfig

        try:
            return SessionConfig.from_env(unsupported=unsupported, sandbox=sandbox)
        except ValueError as e:
            raise click.UsageError(str(e)) from e

    # =========================================================================
    # Root CLI
    # =========================================================================
    @click.group()
    @click.version_option(package_name="luasnap")
    @click.option(
        "--log-level",
        default=None,
        help="Log level (default: LUASNAP_LOG_LEVEL or WARNING)",
    )
    @click.option(
        "--log-format",
        type=click.Choice(["text", "json"]),
        default=None,
        help="Log format (default: LUASNAP_LOG_FORMAT or text)",
    )
    def cli(log_level: str | None, log_format: str | None):
        """luasnap - Lua evaluation with structured results.

        Every expression runs against one persistent Lua state. Results are
        printed with all reachable tables expanded; tables already shown
        appear as references, so cyclic structures print safely.

        **Commands:**

            luasnap repl     Interactive (or piped) line-by-line evaluation

            luasnap eval     Evaluate expressions given as arguments
        """
        from luasnap.core.logging_config import configure_logging

        try:
            configure_logging(level=log_level, format=log_format)  # type: ignore[arg-type]
        except ValueError as e:
            raise click.UsageError(str(e)) from e

    @cli.command()
    @session_options
    def repl(json_output: bool, sandbox: bool | None, unsupported: str | None):
        """Evaluate one expression per input line.

        **Examples:**

            luasnap repl

            luasnap repl --json < script.lua

            echo 't = {}; t.me = t; return t' | luasnap repl
        """
        from luasnap.frontends.cli.repl import run_interactive

        config = build_config(sandbox, unsupported)
        asyncio.run(run_interactive(config=config, json_output=json_output))

    @cli.command(name="eval")
    @click.argument("expressions", nargs=-1, required=True)
    @session_options
    def eval_command(
        expressions: tuple[str, ...],
        json_output: bool,
        sandbox: bool | None,
        unsupported: str | None,
    ):
        """Evaluate EXPRESSIONS in order against one session.

        Exits with status 1 if any expression failed.

        **Examples:**

            luasnap eval "1 + 1"

            luasnap eval "x = {}" "x.a = 1; return x" --json
        """
        from luasnap.frontends.cli.repl import run_expressions

        config = build_config(sandbox, unsupported)
        failures = asyncio.run(
            run_expressions(list(expressions), config=config, json_output=json_output)
        )
        if failures:
            sys.exit(1)

    return cli


if __name__ == "__main__":
    main()
