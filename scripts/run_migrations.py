#!/usr/bin/env python3
"""Apply the comments schema migrations, reporting failures to Logfire.

Usage:
    python scripts/run_migrations.py            # upgrade to head
    python scripts/run_migrations.py 3c91d4e2a7b0
"""

import sys

import logfire
from alembic import command
from alembic.config import Config

from commentary.config import Settings
from commentary.util.logging import setup_logging
from commentary.util.observability import configure_logfire


def main(argv: list[str]) -> int:
    """Upgrade the database to the requested revision (default: head)."""
    settings = Settings()
    setup_logging(settings)
    configure_logfire(settings)

    revision = argv[1] if len(argv) > 1 else "head"

    with logfire.span("migrations.upgrade", revision=revision):
        try:
            command.upgrade(Config("alembic.ini"), revision)
        except Exception as e:
            logfire.error(
                "Database migration failed",
                revision=revision,
                error=str(e),
                error_type=type(e).__name__,
                _exc_info=sys.exc_info(),
            )
            # Re-raise so a deploy step fails instead of running on a broken schema
            raise

    logfire.info("Database migrations applied", revision=revision)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
