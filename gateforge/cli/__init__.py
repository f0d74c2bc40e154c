"""Gateforge CLI: Typer-based command-line interface.

Provides the ``gateforge`` command with subcommands for building a skill,
validating an existing skill directory and listing the gates.

All output uses Rich for formatted terminal display.
"""
