#!/usr/bin/env python3
"""Run database migrations with proper path setup."""

import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# alembic.ini lives in the package directory
package_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
os.chdir(package_dir)

from alembic import command
from alembic.config import Config


def upgrade():
    """Run migrations to latest version."""
    command.upgrade(Config("alembic.ini"), "head")
    print("Migrations completed successfully")


def downgrade(revision: str = "-1"):
    """Downgrade to a specific revision."""
    command.downgrade(Config("alembic.ini"), revision)
    print(f"Downgraded to {revision}")


def current():
    """Show current revision."""
    command.current(Config("alembic.ini"), verbose=True)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run database migrations")
    parser.add_argument(
        "command",
        choices=["upgrade", "downgrade", "current"],
        default="upgrade",
        nargs="?",
        help="Migration command to run",
    )
    parser.add_argument(
        "--revision",
        default="-1",
        help="Target revision for downgrade",
    )

    args = parser.parse_args()

    if args.command == "upgrade":
        upgrade()
    elif args.command == "downgrade":
        downgrade(args.revision)
    elif args.command == "current":
        current()
