"""CLI frontend for luasnap.

Commands:
    luasnap repl    Evaluate stdin (or an interactive prompt) line by line
    luasnap eval    Evaluate expressions given as arguments

Example:
    $ luasnap eval "t = {1, 2}" "t.me = t; return t"
    $ echo "return 40 + 2" | luasnap repl --json
"""

from luasnap.frontends.cli.main import main

__all__ = ["main"]
