from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domain.clock import to_display, to_iso
from domain.models.currency import RateSample


class RatePoint(BaseModel):
	rate: float = Field(..., description='EUR priced in the quote currency')
	timestamp: str = Field(..., description='Sample time, YYYY-MM-DD HH:MM:SS (UTC)')
	timestamp_iso: str = Field(..., description='Sample time, ISO-8601')

	@classmethod
	def from_sample(cls, sample: RateSample) -> 'RatePoint':
		return cls(
			rate=sample.rate_as_float,
			timestamp=to_display(sample.timestamp),
			timestamp_iso=to_iso(sample.timestamp),
		)


class PairRatePoint(RatePoint):
	pair: str = Field(..., description='Currency pair')

	@classmethod
	def from_sample(cls, sample: RateSample) -> 'PairRatePoint':
		return cls(
			pair=sample.pair.value,
			rate=sample.rate_as_float,
			timestamp=to_display(sample.timestamp),
			timestamp_iso=to_iso(sample.timestamp),
		)


class Last24HoursResponse(BaseModel):
	pair: str
	period: str = 'last-24h'
	count: int
	rates: list[RatePoint]

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'pair': 'EUR/BTC',
				'period': 'last-24h',
				'count': 1,
				'rates': [
					{
						'rate': 0.0000112358,
						'timestamp': '2025-01-09 10:30:00',
						'timestamp_iso': '2025-01-09T10:30:00+00:00',
					}
				],
			}
		}
	)


class DayRatesResponse(BaseModel):
	pair: str
	date: str
	count: int
	rates: list[RatePoint]


class LatestRatesResponse(BaseModel):
	rates: list[PairRatePoint]
	count: int


class SupportedPairsResponse(BaseModel):
	supported_pairs: list[str] = Field(description='Supported currency pairs')
	count: int

	model_config = ConfigDict(
		json_schema_extra={
			'examples': [{'supported_pairs': ['EUR/BTC', 'EUR/ETH', 'EUR/LTC'], 'count': 3}]
		}
	)


class HealthResponse(BaseModel):
	status: str
	timestamp: str
	services: dict[str, dict[str, Any]]


class ErrorResponse(BaseModel):
	error: str = Field(..., description='Error category')
	message: str = Field(..., description='Human readable message')
	timestamp: str = Field(..., description='ISO-8601 UTC time of the error')
	path: str = Field(..., description='Request path')
	debug: dict[str, Any] | None = None
