from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from domain.clock import day_bounds, days_ago, utcnow
from domain.models.currency import CurrencyPair, RateSample, RateStatistics
from infrastructure.persistence.models.currency import ExchangeRateDB


def _to_decimal(value) -> Decimal | None:
	if value is None:
		return None
	if isinstance(value, Decimal):
		return value
	return Decimal(str(value))


class RateRepository:
	def __init__(self, db_session: AsyncSession):
		self.db_session = db_session

	async def save(self, sample: RateSample, flush: bool = False) -> None:
		self.db_session.add(
			ExchangeRateDB(
				pair=sample.pair.value,
				rate=sample.rate,
				timestamp=sample.timestamp,
				created_at=sample.created_at,
			)
		)
		if flush:
			await self.flush()

	async def flush(self) -> None:
		await self.db_session.flush()

	async def find_last_24_hours(
		self, pair: CurrencyPair, now: datetime | None = None
	) -> list[RateSample]:
		since = (now or utcnow()) - timedelta(hours=24)
		stmt = (
			select(ExchangeRateDB)
			.filter(
				ExchangeRateDB.pair == pair.value,
				ExchangeRateDB.timestamp >= since,
			)
			.order_by(ExchangeRateDB.timestamp.asc())
		)
		return await self._fetch_samples(stmt)

	async def find_by_day(self, pair: CurrencyPair, day: date) -> list[RateSample]:
		start_of_day, end_of_day = day_bounds(day)
		stmt = (
			select(ExchangeRateDB)
			.filter(
				ExchangeRateDB.pair == pair.value,
				ExchangeRateDB.timestamp >= start_of_day,
				ExchangeRateDB.timestamp <= end_of_day,
			)
			.order_by(ExchangeRateDB.timestamp.asc())
		)
		return await self._fetch_samples(stmt)

	async def find_latest_by_pair(self, pair: CurrencyPair) -> RateSample | None:
		stmt = (
			select(ExchangeRateDB)
			.filter(ExchangeRateDB.pair == pair.value)
			.order_by(ExchangeRateDB.timestamp.desc(), ExchangeRateDB.id.desc())
			.limit(1)
		)
		result = await self.db_session.execute(stmt)
		row = result.scalars().first()
		return self._to_domain(row) if row else None

	async def cleanup_old_rates(self, days_to_keep: int = 30, now: datetime | None = None) -> int:
		cutoff = days_ago(days_to_keep, now)
		result = await self.db_session.execute(
			delete(ExchangeRateDB).where(ExchangeRateDB.timestamp < cutoff)
		)
		return result.rowcount or 0

	async def get_statistics(
		self, pair: CurrencyPair, start: datetime, end: datetime
	) -> RateStatistics:
		stmt = select(
			func.count(ExchangeRateDB.id),
			func.min(ExchangeRateDB.rate),
			func.max(ExchangeRateDB.rate),
			func.avg(ExchangeRateDB.rate),
		).filter(
			ExchangeRateDB.pair == pair.value,
			ExchangeRateDB.timestamp >= start,
			ExchangeRateDB.timestamp <= end,
		)
		count, min_rate, max_rate, avg_rate = (await self.db_session.execute(stmt)).one()

		if not count:
			return RateStatistics(count=0, min=None, max=None, avg=None)

		return RateStatistics(
			count=int(count),
			min=_to_decimal(min_rate),
			max=_to_decimal(max_rate),
			avg=_to_decimal(avg_rate),
		)

	async def _fetch_samples(self, stmt) -> list[RateSample]:
		result = await self.db_session.execute(stmt)
		return [self._to_domain(r) for r in result.scalars().all()]

	@staticmethod
	def _to_domain(row: ExchangeRateDB) -> RateSample:
		return RateSample(
			pair=CurrencyPair(row.pair),
			rate=row.rate,
			timestamp=row.timestamp,
			created_at=row.created_at,
		)
