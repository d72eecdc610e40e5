# File: prismagen/__main__.py
"""
prismagen — Module entry point.

Allows running the generator directly via::

    python -m prismagen generate package order

This module simply delegates to the CLI entry point defined in ``prismagen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from prismagen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
