# Path: notion_backup/backup.py
"""
Notion Backup - Main Entry Point

Exports the workspace as markdown and html and unpacks the archives
into <backup root>/markdown and <backup root>/html.

Exit status:
- 1 if required credentials are missing (nothing is sent) or on a
  fatal error outside the per-format pipelines
- 0 otherwise, whether or not every format succeeded

Usage:
    notion-backup
    python -m notion_backup.backup
"""

import asyncio
import sys

from notion_backup.core.config_loader import ConfigLoader
from notion_backup.core.errors import ConfigurationError
from notion_backup.core.logger import configure_logging, get_logger
from notion_backup.engine.coordinator import BackupCoordinator

logger = get_logger(__name__, 'cli')


async def run_backup(config: ConfigLoader) -> None:
    """Run one backup with a fresh coordinator."""
    coordinator = BackupCoordinator(config)
    try:
        await coordinator.run()
    finally:
        await coordinator.close()


def main() -> int:
    """
    Process entry point.

    Returns:
        Process exit status
    """
    config = ConfigLoader()

    try:
        config.validate()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(config)

    try:
        asyncio.run(run_backup(config))
    except KeyboardInterrupt:
        print("\n\nBackup cancelled by user.")
        return 0
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"\nFatal error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
