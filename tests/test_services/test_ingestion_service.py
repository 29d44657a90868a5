from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from application.services.ingestion_service import RateIngestionService, RunStatus
from domain.exceptions.currency import AllRatesFailedError, NetworkError, UnsupportedPairError
from domain.models.currency import CurrencyPair, RateBatch
from infrastructure.persistence.repositories.currency import RateRepository

RUN_AT = datetime(2025, 1, 9, 10, 30, 0)

RATES = {
    CurrencyPair.EUR_BTC: Decimal('0.000012345'),
    CurrencyPair.EUR_ETH: Decimal('0.000567890'),
    CurrencyPair.EUR_LTC: Decimal('0.010500000'),
}


@pytest.fixture
def mock_provider():
    provider = MagicMock()
    provider.is_available = AsyncMock(return_value=True)
    provider.fetch_all_rates = AsyncMock(return_value=RateBatch(rates=dict(RATES), errors={}))
    provider.fetch_rate = AsyncMock(return_value=RATES[CurrencyPair.EUR_ETH])
    return provider


@pytest.fixture
def service(mock_provider, database):
    return RateIngestionService(provider=mock_provider, database=database, clock=lambda: RUN_AT)


async def stored(database, pair):
    async with database.session() as session:
        return await RateRepository(session).find_last_24_hours(pair, now=RUN_AT)


@pytest.mark.asyncio
async def test_run_all_pairs_persists_with_shared_timestamp(service, database):
    report = await service.run()

    assert report.status == RunStatus.SUCCESS
    assert report.exit_code == 0
    assert report.run_timestamp == RUN_AT
    assert len(report.successes) == 3
    assert all(o.persisted for o in report.outcomes)

    for pair, rate in RATES.items():
        samples = await stored(database, pair)
        assert len(samples) == 1
        assert samples[0].rate == rate
        assert samples[0].timestamp == RUN_AT


@pytest.mark.asyncio
async def test_run_dry_run_persists_nothing(service, database, mock_provider):
    report = await service.run(dry_run=True)

    assert report.status == RunStatus.SUCCESS
    assert report.dry_run is True
    assert len(report.successes) == 3
    assert not any(o.persisted for o in report.outcomes)
    mock_provider.fetch_all_rates.assert_awaited_once()

    for pair in CurrencyPair:
        assert await stored(database, pair) == []

    assert report.summary_lines()[-1].endswith('(dry run, nothing saved)')


@pytest.mark.asyncio
async def test_run_partial_failure_persists_successes_and_fails(service, database, mock_provider):
    mock_provider.fetch_all_rates.return_value = RateBatch(
        rates={CurrencyPair.EUR_BTC: RATES[CurrencyPair.EUR_BTC], CurrencyPair.EUR_LTC: RATES[CurrencyPair.EUR_LTC]},
        errors={CurrencyPair.EUR_ETH: 'Network error: connection refused'},
    )

    report = await service.run()

    assert report.status == RunStatus.FAILED
    assert report.exit_code == 1
    assert len(report.successes) == 2
    assert [f.pair for f in report.failures] == ['EUR/ETH']
    assert 'Network error' in report.failures[0].error

    assert len(await stored(database, CurrencyPair.EUR_BTC)) == 1
    assert len(await stored(database, CurrencyPair.EUR_LTC)) == 1
    assert await stored(database, CurrencyPair.EUR_ETH) == []


@pytest.mark.asyncio
async def test_run_all_failed(service, database, mock_provider):
    mock_provider.fetch_all_rates.side_effect = AllRatesFailedError(
        {pair: 'HTTP 500: boom' for pair in CurrencyPair}
    )

    report = await service.run()

    assert report.status == RunStatus.FAILED
    assert report.successes == []
    assert len(report.failures) == 3
    for pair in CurrencyPair:
        assert await stored(database, pair) == []


@pytest.mark.asyncio
async def test_run_upstream_unavailable_fetches_nothing(service, database, mock_provider):
    mock_provider.is_available.return_value = False

    report = await service.run()

    assert report.status == RunStatus.FAILED
    assert report.error == 'Binance API is not available'
    assert report.outcomes == []
    mock_provider.fetch_all_rates.assert_not_called()
    mock_provider.fetch_rate.assert_not_called()
    assert report.summary_lines()[0] == 'Run failed: Binance API is not available'


@pytest.mark.asyncio
async def test_run_single_pair(service, database, mock_provider):
    report = await service.run(pair='EUR/ETH')

    assert report.status == RunStatus.SUCCESS
    assert [o.pair for o in report.outcomes] == ['EUR/ETH']
    mock_provider.fetch_rate.assert_awaited_once_with('EUR/ETH')
    mock_provider.fetch_all_rates.assert_not_called()

    samples = await stored(database, CurrencyPair.EUR_ETH)
    assert [s.rate for s in samples] == [RATES[CurrencyPair.EUR_ETH]]
    assert await stored(database, CurrencyPair.EUR_BTC) == []


@pytest.mark.asyncio
async def test_run_single_pair_unsupported(service, database, mock_provider):
    mock_provider.fetch_rate.side_effect = UnsupportedPairError('Unsupported pair: EUR/XRP')

    report = await service.run(pair='EUR/XRP')

    assert report.status == RunStatus.FAILED
    assert report.failures[0].pair == 'EUR/XRP'
    assert report.failures[0].error == 'Unsupported pair: EUR/XRP'
    for pair in CurrencyPair:
        assert await stored(database, pair) == []


@pytest.mark.asyncio
async def test_run_single_pair_network_error(service, mock_provider):
    mock_provider.fetch_rate.side_effect = NetworkError('Network error: timed out')

    report = await service.run(pair=CurrencyPair.EUR_BTC)

    assert report.status == RunStatus.FAILED
    assert report.failures[0].pair == 'EUR/BTC'


@pytest.mark.asyncio
async def test_run_never_raises_on_unexpected_error(service, mock_provider):
    mock_provider.is_available.side_effect = RuntimeError('unexpected')

    report = await service.run()

    assert report.status == RunStatus.FAILED
    assert 'unexpected' in report.error


@pytest.mark.asyncio
async def test_run_commit_failure_marks_pairs_failed(mock_provider):
    database = MagicMock()
    session_cm = MagicMock()
    session_cm.__aenter__ = AsyncMock(return_value=MagicMock())
    session_cm.__aexit__ = AsyncMock(side_effect=RuntimeError('database is locked'))
    database.session.return_value = session_cm

    service = RateIngestionService(provider=mock_provider, database=database, clock=lambda: RUN_AT)
    report = await service.run()

    assert report.status == RunStatus.FAILED
    assert len(report.failures) == 3
    assert all('database is locked' in o.error for o in report.failures)
    assert not any(o.persisted for o in report.outcomes)
