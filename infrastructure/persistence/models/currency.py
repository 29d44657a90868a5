from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from domain.clock import utcnow
from domain.models.currency import RATE_PRECISION, RATE_SCALE, CurrencyPair


class ExactDecimal(TypeDecorator):
	"""
	Fixed-point decimal column.

	Uses NUMERIC where the backend has an exact one. SQLite only has REAL, so
	there the value is stored as zero-padded fixed-width text, which keeps every
	digit and still orders correctly for MIN/MAX over positive rates.
	"""

	impl = Numeric
	cache_ok = True

	def __init__(self, precision: int = RATE_PRECISION, scale: int = RATE_SCALE):
		super().__init__(precision=precision, scale=scale, asdecimal=True)
		self.precision = precision
		self.scale = scale

	@property
	def text_width(self) -> int:
		return self.precision + 1

	def load_dialect_impl(self, dialect):
		if dialect.name == 'sqlite':
			return dialect.type_descriptor(String(self.text_width))
		return dialect.type_descriptor(Numeric(self.precision, self.scale, asdecimal=True))

	def process_bind_param(self, value, dialect):
		if value is None:
			return None
		value = value if isinstance(value, Decimal) else Decimal(str(value))
		if dialect.name == 'sqlite':
			return format(value, f'0{self.text_width}.{self.scale}f')
		return value

	def process_result_value(self, value, dialect):
		if value is None or isinstance(value, Decimal):
			return value
		return Decimal(str(value))


class Base(DeclarativeBase):
	pass


class ExchangeRateDB(Base):
	__tablename__ = 'exchange_rates'

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	pair: Mapped[str] = mapped_column(String(10), nullable=False)
	rate: Mapped[Decimal] = mapped_column(ExactDecimal(), nullable=False)
	timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

	__table_args__ = (
		Index('idx_pair_timestamp', 'pair', 'timestamp'),
		Index('idx_timestamp', 'timestamp'),
		CheckConstraint('CAST(rate AS REAL) > 0', name='ck_exchange_rates_rate_positive'),
		CheckConstraint(
			'pair IN ({})'.format(', '.join(f"'{pair.value}'" for pair in CurrencyPair)),
			name='ck_exchange_rates_pair_supported',
		),
	)
