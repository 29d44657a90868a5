from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from config.settings import Settings
from domain.clock import utcnow
from domain.models.currency import CurrencyPair, RateBatch, RateSample
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.currency import RateRepository
from workers import rate_cleanup, rate_ingestor


@pytest.fixture
def settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'jobs.db'}", RETENTION_DAYS=30)


@pytest.fixture
def mock_provider():
    provider = MagicMock()
    provider.is_available = AsyncMock(return_value=True)
    provider.fetch_all_rates = AsyncMock(return_value=RateBatch(
        rates={
            CurrencyPair.EUR_BTC: Decimal('0.000012345'),
            CurrencyPair.EUR_ETH: Decimal('0.000567890'),
            CurrencyPair.EUR_LTC: Decimal('0.0105'),
        },
        errors={},
    ))
    provider.fetch_rate = AsyncMock(return_value=Decimal('0.0105'))
    provider.close = AsyncMock()
    return provider


async def count_rows(settings):
    database = Database(settings.DATABASE_URL)
    try:
        async with database.session() as session:
            repository = RateRepository(session)
            stats = [
                await repository.get_statistics(pair, utcnow() - timedelta(days=365), utcnow())
                for pair in CurrencyPair
            ]
    finally:
        await database.close()
    return sum(s.count for s in stats)


def test_ingestor_parse_args_defaults():
    args = rate_ingestor.parse_args([])

    assert args.pair is None
    assert args.dry_run is False


def test_ingestor_parse_args_short_flags():
    args = rate_ingestor.parse_args(['-p', 'EUR/BTC', '-d'])

    assert args.pair == 'EUR/BTC'
    assert args.dry_run is True


def test_cleanup_parse_args_rejects_negative_days():
    with pytest.raises(SystemExit):
        rate_cleanup.parse_args(['--days', '-1'])


def test_cleanup_parse_args_default_from_settings():
    assert rate_cleanup.parse_args([], default_days=7).days == 7


@pytest.mark.asyncio
async def test_ingestor_main_stores_all_pairs(settings, mock_provider):
    with patch('workers.rate_ingestor.get_settings', return_value=settings), \
            patch('workers.rate_ingestor.setup_logging'), \
            patch('workers.rate_ingestor.create_provider', return_value=mock_provider):
        exit_code = await rate_ingestor.main([])

    assert exit_code == 0
    assert await count_rows(settings) == 3
    mock_provider.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_ingestor_main_dry_run_stores_nothing(settings, mock_provider):
    with patch('workers.rate_ingestor.get_settings', return_value=settings), \
            patch('workers.rate_ingestor.setup_logging'), \
            patch('workers.rate_ingestor.create_provider', return_value=mock_provider):
        exit_code = await rate_ingestor.main(['--dry-run'])

    assert exit_code == 0
    database = Database(settings.DATABASE_URL)
    await database.create_tables()
    await database.close()
    assert await count_rows(settings) == 0


@pytest.mark.asyncio
async def test_ingestor_main_exits_non_zero_when_upstream_down(settings, mock_provider):
    mock_provider.is_available.return_value = False

    with patch('workers.rate_ingestor.get_settings', return_value=settings), \
            patch('workers.rate_ingestor.setup_logging'), \
            patch('workers.rate_ingestor.create_provider', return_value=mock_provider):
        exit_code = await rate_ingestor.main([])

    assert exit_code == 1
    mock_provider.fetch_all_rates.assert_not_called()


@pytest.mark.asyncio
async def test_cleanup_main_prunes_old_rates(settings):
    database = Database(settings.DATABASE_URL)
    await database.create_tables()
    async with database.session() as session:
        repository = RateRepository(session)
        await repository.save(RateSample(
            pair=CurrencyPair.EUR_BTC, rate=Decimal('0.00001'), timestamp=utcnow() - timedelta(days=40)
        ))
        await repository.save(RateSample(
            pair=CurrencyPair.EUR_BTC, rate=Decimal('0.00002'), timestamp=utcnow() - timedelta(days=1)
        ))
    await database.close()

    with patch('workers.rate_cleanup.get_settings', return_value=settings), \
            patch('workers.rate_cleanup.setup_logging'):
        exit_code = await rate_cleanup.main([])

    assert exit_code == 0
    assert await count_rows(settings) == 1
