# File: cqrsgen/__main__.py
"""
CQRSGen — Module entry point.

Allows running the generator directly via::

    python -m cqrsgen -t public.orders -n Acme.Services

This module simply delegates to the CLI entry point defined in ``cqrsgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from cqrsgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
