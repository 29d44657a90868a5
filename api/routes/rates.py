from datetime import date as date_type
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_rate_query_service
from api.error_handlers import invalid_pair_message
from api.schemas import (
	DayRatesResponse,
	ErrorResponse,
	Last24HoursResponse,
	LatestRatesResponse,
	PairRatePoint,
	RatePoint,
	SupportedPairsResponse,
)
from application.services.rate_query_service import RateQueryService
from domain.exceptions.currency import InvalidDateError, UnsupportedPairError, ValidationFailedError
from domain.models.currency import CurrencyPair

router = APIRouter(
	prefix='/api/rates',
	tags=['rates'],
	responses={
		400: {'model': ErrorResponse, 'description': 'Invalid parameters'},
		500: {'model': ErrorResponse, 'description': 'Unexpected server error'},
	},
)

DATE_PATTERN = r'^\d{4}-\d{2}-\d{2}$'


def parse_pair(value: str) -> CurrencyPair:
	try:
		return CurrencyPair.parse(value)
	except UnsupportedPairError as e:
		raise ValidationFailedError(invalid_pair_message()) from e


def parse_day(value: str) -> date_type:
	try:
		return date_type.fromisoformat(value)
	except ValueError as e:
		raise InvalidDateError('Date must be a valid date in YYYY-MM-DD format') from e


@router.get(
	'/pairs',
	response_model=SupportedPairsResponse,
	status_code=status.HTTP_200_OK,
	summary='List supported currency pairs',
)
async def get_supported_pairs() -> SupportedPairsResponse:
	pairs = CurrencyPair.values()
	return SupportedPairsResponse(supported_pairs=pairs, count=len(pairs))


@router.get(
	'/last-24h',
	response_model=Last24HoursResponse,
	status_code=status.HTTP_200_OK,
	summary='Rates for the last 24 hours',
)
async def get_last_24_hours(
	pair: Annotated[CurrencyPair, Query(description='Currency pair, e.g. EUR/BTC')],
	service: Annotated[RateQueryService, Depends(get_rate_query_service)],
) -> Last24HoursResponse:
	samples = await service.last_24_hours(pair)
	return Last24HoursResponse(
		pair=pair.value,
		count=len(samples),
		rates=[RatePoint.from_sample(s) for s in samples],
	)


@router.get(
	'/day',
	response_model=DayRatesResponse,
	status_code=status.HTTP_200_OK,
	summary='Rates for a calendar day',
)
async def get_day(
	pair: Annotated[CurrencyPair, Query(description='Currency pair, e.g. EUR/BTC')],
	date: Annotated[str, Query(pattern=DATE_PATTERN, description='Day in YYYY-MM-DD format')],
	service: Annotated[RateQueryService, Depends(get_rate_query_service)],
) -> DayRatesResponse:
	samples = await service.for_day(pair, parse_day(date))
	return DayRatesResponse(
		pair=pair.value,
		date=date,
		count=len(samples),
		rates=[RatePoint.from_sample(s) for s in samples],
	)


@router.get(
	'/latest',
	response_model=PairRatePoint | LatestRatesResponse,
	status_code=status.HTTP_200_OK,
	summary='Latest rate for one pair or for every pair',
	responses={404: {'model': ErrorResponse, 'description': 'No rates stored for the pair'}},
)
async def get_latest(
	service: Annotated[RateQueryService, Depends(get_rate_query_service)],
	pair: Annotated[str | None, Query(description='Optional currency pair; empty means every pair')] = None,
) -> PairRatePoint | LatestRatesResponse:
	if pair:
		return PairRatePoint.from_sample(await service.latest(parse_pair(pair)))

	samples = await service.latest_for_all_pairs()
	return LatestRatesResponse(
		rates=[PairRatePoint.from_sample(s) for s in samples],
		count=len(samples),
	)
