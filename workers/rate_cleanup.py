import argparse
import asyncio
import logging
import sys

from config.settings import get_settings
from infrastructure.monitoring.logger import setup_logging
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.currency import RateRepository

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None, default_days: int = 30) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='crypto-rates-cleanup',
        description='Delete stored exchange rates older than the retention window',
    )
    parser.add_argument(
        '--days',
        type=int,
        default=default_days,
        help=f'Number of days of history to keep (default: {default_days})',
    )
    args = parser.parse_args(argv)
    if args.days < 0:
        parser.error('--days must not be negative')
    return args


async def prune(database: Database, days_to_keep: int) -> int:
    async with database.session() as session:
        deleted = await RateRepository(session).cleanup_old_rates(days_to_keep)
    logger.info(f'Deleted {deleted} exchange rates older than {days_to_keep} days')
    return deleted


async def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    args = parse_args(argv, default_days=settings.RETENTION_DAYS)
    setup_logging(settings)

    database = Database(settings.DATABASE_URL)
    try:
        await database.create_tables()
        await prune(database, args.days)
    except Exception as e:
        logger.error(f'Rate cleanup failed: {e}', exc_info=True)
        return 1
    finally:
        await database.close()
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
