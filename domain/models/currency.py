from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum

from domain.clock import utcnow
from domain.exceptions.currency import UnsupportedPairError

# Stored rates carry 20 significant digits, 12 of them fractional
RATE_PRECISION = 20
RATE_SCALE = 12
RATE_QUANTUM = Decimal(1).scaleb(-RATE_SCALE)
RATE_UPPER_BOUND = Decimal(10) ** (RATE_PRECISION - RATE_SCALE)


def quantize_rate(value: Decimal | str | float) -> Decimal:
    """
    Rounds a rate to the stored scale.

    Raises ValueError when the rounded rate is not a storable positive amount,
    e.g. a reciprocal too small to survive 12 fractional digits.
    """
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
        rate = rate.quantize(RATE_QUANTUM)
    except InvalidOperation as e:
        raise ValueError(f'Rate is not a finite decimal: {value!r}') from e

    if rate <= 0:
        raise ValueError(f'Rate must be positive at {RATE_SCALE} decimal places, got {value}')
    if rate >= RATE_UPPER_BOUND:
        raise ValueError(f'Rate must be below {RATE_UPPER_BOUND}, got {value}')
    return rate


class CurrencyPair(StrEnum):
    """Closed set of supported pairs, in reporting order."""

    EUR_BTC = 'EUR/BTC'
    EUR_ETH = 'EUR/ETH'
    EUR_LTC = 'EUR/LTC'

    @classmethod
    def parse(cls, value: 'CurrencyPair | str') -> 'CurrencyPair':
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as e:
            raise UnsupportedPairError(f'Unsupported pair: {value}') from e

    @classmethod
    def values(cls) -> list[str]:
        return [pair.value for pair in cls]

    @property
    def base_currency(self) -> str:
        return self.value.split('/')[0]

    @property
    def quote_currency(self) -> str:
        return self.value.split('/')[1]


@dataclass(frozen=True)
class RateSample:
    pair: CurrencyPair
    rate: Decimal
    timestamp: datetime
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        object.__setattr__(self, 'pair', CurrencyPair.parse(self.pair))
        object.__setattr__(self, 'rate', quantize_rate(self.rate))

    @property
    def base_currency(self) -> str:
        return self.pair.base_currency

    @property
    def quote_currency(self) -> str:
        return self.pair.quote_currency

    @property
    def rate_as_float(self) -> float:
        return float(self.rate)


@dataclass(frozen=True)
class RateBatch:
    rates: dict[CurrencyPair, Decimal]  # Pairs fetched successfully
    errors: dict[CurrencyPair, str]  # Error message per failed pair

    @property
    def is_partial(self) -> bool:
        return bool(self.rates) and bool(self.errors)


@dataclass(frozen=True)
class RateStatistics:
    count: int
    min: Decimal | None
    max: Decimal | None
    avg: Decimal | None
