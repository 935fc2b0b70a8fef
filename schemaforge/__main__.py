# File: schemaforge/__main__.py
"""
SchemaForge — Module entry point.

Allows running the generator directly via::

    python -m schemaforge --schema schema.json --output ./generated_api

This module simply delegates to the CLI entry point defined in ``schemaforge.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from schemaforge.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
