"""Frontends - user interfaces for luasnap.

Frontends only talk to core through Session and the value types.

Submodules:
    cli/    Command-line REPL and renderer
"""
