"""
Programmatic Alembic migration runner.

Allows running migrations without an alembic.ini by configuring the script location
to this package's migrations directory.

Usage examples:
    python -m inspectflow.db.run_migrations upgrade head
    python -m inspectflow.db.run_migrations downgrade base
    python -m inspectflow.db.run_migrations current
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

# Commands that take a revision default to the usual target.
_COMMANDS: Dict[str, Callable[..., None]] = {
    "upgrade": command.upgrade,
    "downgrade": command.downgrade,
    "current": command.current,
    "heads": command.heads,
    "history": command.history,
}
_DEFAULT_ARGS: Dict[str, List[str]] = {
    "upgrade": ["head"],
    "downgrade": ["-1"],
}


def build_config() -> Config:
    """Alembic Config pointing at the bundled migrations and the configured database."""
    from inspectflow.db.config import get_settings

    cfg = Config()
    script_location = Path(__file__).resolve().parent / "migrations"
    cfg.set_main_option("script_location", str(script_location))
    # env.py uses the async URL when online; this one serves offline (--sql) mode.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url)
    return cfg


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run an Alembic command with programmatic configuration."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        logger.error("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cmd, other = args[0], args[1:]
    runner = _COMMANDS.get(cmd)
    if runner is None:
        logger.error("Unsupported Alembic command: %s (expected one of %s)", cmd, ", ".join(_COMMANDS))
        sys.exit(2)

    runner(build_config(), *(other or _DEFAULT_ARGS.get(cmd, [])))


if __name__ == "__main__":
    main()
