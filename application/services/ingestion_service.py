import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from domain.clock import to_display, utcnow
from domain.exceptions.currency import AllRatesFailedError, ProviderError
from domain.models.currency import CurrencyPair, RateSample
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.currency import RateRepository
from infrastructure.providers.binance import BinanceProvider

logger = logging.getLogger(__name__)

UPSTREAM_UNAVAILABLE = "Binance API is not available"


class RunStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class PairOutcome:
    pair: str
    rate: Decimal | None = None
    error: str | None = None
    persisted: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class IngestionReport:
    run_timestamp: datetime | None
    dry_run: bool = False
    outcomes: list[PairOutcome] = field(default_factory=list)
    error: str | None = None  # Run-level failure, e.g. upstream unavailable

    @property
    def successes(self) -> list[PairOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failures(self) -> list[PairOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def status(self) -> RunStatus:
        if self.error is not None or not self.outcomes or self.failures:
            return RunStatus.FAILED
        return RunStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.status == RunStatus.SUCCESS else 1

    def summary_lines(self) -> list[str]:
        lines = []
        if self.error:
            lines.append(f"Run failed: {self.error}")
        for outcome in self.successes:
            lines.append(f"OK   {outcome.pair}: {outcome.rate}")
        for outcome in self.failures:
            lines.append(f"FAIL {outcome.pair}: {outcome.error}")
        lines.append(
            f"Successfully updated: {len(self.successes)} pairs, errors: {len(self.failures)}"
            + (" (dry run, nothing saved)" if self.dry_run else "")
        )
        return lines


class RateIngestionService:
    """
    One ingestion run: preflight the upstream, fetch one or all pairs, persist
    every successful rate under a single shared timestamp and report per-pair
    outcomes. Partial success still persists the pairs that succeeded.
    """

    def __init__(
        self,
        provider: BinanceProvider,
        database: Database,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.provider = provider
        self.database = database
        self.clock = clock

    async def run(self, pair: CurrencyPair | str | None = None, dry_run: bool = False) -> IngestionReport:
        try:
            report = await self._run(pair, dry_run)
        except Exception as e:
            logger.error(f"Unexpected error in rate update run: {e}", exc_info=True)
            report = IngestionReport(run_timestamp=None, dry_run=dry_run, error=f"Unexpected error: {e}")

        logger.info(
            f"Exchange rates update completed: status={report.status} "
            f"success_count={len(report.successes)} error_count={len(report.failures)} "
            f"dry_run={dry_run} timestamp="
            f"{to_display(report.run_timestamp) if report.run_timestamp else 'n/a'}"
        )
        return report

    async def _run(self, pair: CurrencyPair | str | None, dry_run: bool) -> IngestionReport:
        if dry_run:
            logger.info("Running in dry-run mode - no data will be saved to database")

        if not await self.provider.is_available():
            logger.error(UPSTREAM_UNAVAILABLE)
            return IngestionReport(run_timestamp=None, dry_run=dry_run, error=UPSTREAM_UNAVAILABLE)

        # Every sample of this run shares the instant the fetch phase started
        run_timestamp = self.clock()
        report = IngestionReport(run_timestamp=run_timestamp, dry_run=dry_run)

        if pair is not None:
            report.outcomes.append(await self._fetch_single(pair))
        else:
            report.outcomes.extend(await self._fetch_all())

        fetched = report.successes
        if dry_run or not fetched:
            return report

        await self._persist(fetched, run_timestamp)
        return report

    async def _fetch_single(self, pair: CurrencyPair | str) -> PairOutcome:
        label = pair.value if isinstance(pair, CurrencyPair) else str(pair)
        try:
            rate = await self.provider.fetch_rate(pair)
        except ProviderError as e:
            logger.error(f"Failed to update {label}: {e}")
            return PairOutcome(pair=label, error=str(e))
        return PairOutcome(pair=label, rate=rate)

    async def _fetch_all(self) -> list[PairOutcome]:
        try:
            batch = await self.provider.fetch_all_rates()
        except AllRatesFailedError as e:
            logger.error(f"Binance API error: {e}")
            return [PairOutcome(pair=str(p), error=message) for p, message in e.errors.items()]

        outcomes = [PairOutcome(pair=p.value, rate=rate) for p, rate in batch.rates.items()]
        outcomes.extend(PairOutcome(pair=p.value, error=message) for p, message in batch.errors.items())
        return outcomes

    async def _persist(self, outcomes: list[PairOutcome], run_timestamp: datetime) -> None:
        pending: list[PairOutcome] = []
        try:
            async with self.database.session() as session:
                repository = RateRepository(session)
                for outcome in outcomes:
                    try:
                        sample = RateSample(
                            pair=CurrencyPair(outcome.pair),
                            rate=outcome.rate,
                            timestamp=run_timestamp,
                        )
                        await repository.save(sample)
                    except (ValueError, TypeError, ArithmeticError) as e:
                        outcome.error = f"Failed to save {outcome.pair}: {e}"
                        logger.error(outcome.error)
                        continue
                    pending.append(outcome)
            # Committed on context exit: all pending samples become visible together
            for outcome in pending:
                outcome.persisted = True
                logger.info(f"Saved {outcome.pair}: {outcome.rate}")
        except Exception as e:
            logger.error(f"Failed to persist exchange rates: {e}", exc_info=True)
            for outcome in pending:
                outcome.error = f"Failed to save {outcome.pair}: {e}"
