"""
Data retention job: deletes messages older than DATA_RETENTION_DAYS.
Idle sessions and rate-limit windows are swept inside the API process.

Usage:
    python run_cleanup.py [--days 90]

Meant to be run from cron; exits non-zero when the cleanup fails.
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from src.application.commands.maintenance import (
    CleanupOldDataCommand,
    CleanupOldDataHandler,
)
from src.config.logging_config import setup_logging
from src.config.settings import Config
from src.setup.ioc.container import create_container

logger = logging.getLogger("run_cleanup")


async def main(retention_days: int) -> int:
    container = create_container()
    try:
        async with container() as request_container:
            handler = await request_container.get(CleanupOldDataHandler)
            report = await handler.execute(
                CleanupOldDataCommand(retention_days=retention_days)
            )
    except Exception:
        logger.exception("Cleanup failed")
        return 1
    finally:
        await container.close()

    logger.info("Cleanup finished: %s", report)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Delete chat data past retention")
    parser.add_argument("--days", type=int, default=Config.DATA_RETENTION_DAYS)
    args = parser.parse_args()

    setup_logging(Config.LOG_LEVEL, Config.LOG_PATH)
    sys.exit(asyncio.run(main(args.days)))
