from .responses import (
	DayRatesResponse,
	ErrorResponse,
	HealthResponse,
	Last24HoursResponse,
	LatestRatesResponse,
	PairRatePoint,
	RatePoint,
	SupportedPairsResponse,
)

__all__ = [
	'DayRatesResponse',
	'ErrorResponse',
	'HealthResponse',
	'Last24HoursResponse',
	'LatestRatesResponse',
	'PairRatePoint',
	'RatePoint',
	'SupportedPairsResponse',
]
