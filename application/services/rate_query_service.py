import logging
from collections.abc import Callable
from datetime import date

from domain.clock import today
from domain.exceptions.currency import InvalidDateError, RateNotFoundError
from domain.models.currency import CurrencyPair, RateSample
from infrastructure.persistence.repositories.currency import RateRepository

logger = logging.getLogger(__name__)


class RateQueryService:
	def __init__(self, repository: RateRepository, clock_today: Callable[[], date] = today):
		self.repository = repository
		self.clock_today = clock_today

	async def last_24_hours(self, pair: CurrencyPair) -> list[RateSample]:
		logger.info(f'Fetching last 24h rates for {pair}')
		return await self.repository.find_last_24_hours(pair)

	async def for_day(self, pair: CurrencyPair, day: date) -> list[RateSample]:
		if day > self.clock_today():
			raise InvalidDateError('Date cannot be in the future')

		logger.info(f'Fetching rates for {pair} on {day.isoformat()}')
		return await self.repository.find_by_day(pair, day)

	async def latest(self, pair: CurrencyPair) -> RateSample:
		sample = await self.repository.find_latest_by_pair(pair)
		if sample is None:
			raise RateNotFoundError(f'No rates found for pair: {pair}')
		return sample

	async def latest_for_all_pairs(self) -> list[RateSample]:
		samples = []
		for pair in CurrencyPair:
			sample = await self.repository.find_latest_by_pair(pair)
			if sample is not None:
				samples.append(sample)
		return samples
