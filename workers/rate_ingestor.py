"""
Fetch exchange rates from Binance and store them.

Meant to be triggered by an external scheduler (e.g. cron every 5 minutes):

    */5 * * * * crypto-rates-update >> /var/log/crypto-rates.log 2>&1
"""
import argparse
import asyncio
import logging
import sys

from application.services.ingestion_service import RateIngestionService
from config.settings import get_settings
from infrastructure.monitoring.logger import setup_logging
from infrastructure.persistence.database import Database
from infrastructure.providers import create_provider

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='crypto-rates-update',
        description='Fetch and store cryptocurrency exchange rates from Binance API',
    )
    parser.add_argument(
        '-p', '--pair',
        default=None,
        help='Specific pair to update (e.g., EUR/BTC). If not specified, all pairs will be updated.',
    )
    parser.add_argument(
        '-d', '--dry-run',
        action='store_true',
        help='Perform a dry run without saving to database',
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings)

    logger.info('=' * 60)
    logger.info('UPDATING EXCHANGE RATES')
    logger.info('=' * 60)

    database = Database(settings.DATABASE_URL)
    provider = create_provider(settings)
    try:
        if not args.dry_run:
            await database.create_tables()

        service = RateIngestionService(provider=provider, database=database)
        report = await service.run(pair=args.pair, dry_run=args.dry_run)
    except Exception as e:
        logger.error(f'Rate update failed: {e}', exc_info=True)
        return 1
    finally:
        await provider.close()
        await database.close()

    for line in report.summary_lines():
        if report.exit_code == 0:
            logger.info(line)
        else:
            logger.warning(line)

    return report.exit_code


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
