# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point for genro-dbaccess (dbaccess command).

Usage:
    dbaccess --help
    dbaccess ping
    dbaccess query "SELECT * FROM orders WHERE id = :id" -p id=7
"""

from .cli import cli


def main() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
