import logging
from decimal import Decimal, InvalidOperation

import httpx

from domain.exceptions.currency import (
    AllRatesFailedError,
    InvalidPriceError,
    InvalidResponseFormatError,
    NetworkError,
    ProviderError,
    UpstreamError,
)
from domain.models.currency import CurrencyPair, RateBatch, quantize_rate

logger = logging.getLogger(__name__)


class BinanceProvider:
    BASE_URL = "https://api.binance.com/api/v3"
    TICKER_ENDPOINT = "ticker/price"
    PING_ENDPOINT = "ping"

    # Binance quotes crypto priced in EUR
    PAIR_SYMBOLS: dict[CurrencyPair, str] = {
        CurrencyPair.EUR_BTC: "BTCEUR",
        CurrencyPair.EUR_ETH: "ETHEUR",
        CurrencyPair.EUR_LTC: "LTCEUR",
    }

    def __init__(
        self,
        base_url: str = BASE_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10,
        ping_timeout: float = 5,
        user_agent: str = "CryptoRatesAPI/1.0",
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.ping_timeout = ping_timeout
        self._client = client or httpx.AsyncClient(
            headers={"Accept": "application/json", "User-Agent": user_agent},
        )

    @property
    def name(self) -> str:
        return "binance"

    def supported_pairs(self) -> list[CurrencyPair]:
        return list(self.PAIR_SYMBOLS)

    def symbol_for(self, pair: CurrencyPair | str) -> str:
        # Raises UnsupportedPairError for anything outside the closed set
        return self.PAIR_SYMBOLS[CurrencyPair.parse(pair)]

    async def _request(self, endpoint: str, params: dict) -> dict:
        url = f"{self.base_url}/{endpoint}"
        try:
            response = await self._client.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(e.response.status_code, e.response.text[:200]) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {e.__class__.__name__}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseFormatError(f"Invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise InvalidResponseFormatError("Invalid response format: expected a JSON object")
        return data

    async def fetch_rate(self, pair: CurrencyPair | str) -> Decimal:
        """
        Fetch the EUR-priced-in-crypto rate for a pair.

        Binance returns BTC/EUR, ETH/EUR and LTC/EUR, so the quoted price is
        inverted before it is returned.
        """
        pair = CurrencyPair.parse(pair)
        symbol = self.symbol_for(pair)

        logger.info(f"Fetching exchange rate from Binance for {pair} ({symbol})")
        data = await self._request(self.TICKER_ENDPOINT, {"symbol": symbol})

        if "price" not in data:
            raise InvalidResponseFormatError("Invalid response format: missing price field")

        try:
            price = Decimal(str(data["price"]))
        except InvalidOperation as e:
            raise InvalidResponseFormatError(f"Invalid price value: {data['price']!r}") from e

        if not price.is_finite() or price <= 0:
            raise InvalidPriceError(f"Invalid price received: {price}")

        try:
            rate = quantize_rate(Decimal(1) / price)
        except ValueError as e:
            raise InvalidPriceError(f"Invalid price received: {price} ({e})") from e

        logger.info(f"Fetched {pair}: binance_price={price} calculated_rate={rate}")
        return rate

    async def fetch_all_rates(self) -> RateBatch:
        rates: dict[CurrencyPair, Decimal] = {}
        errors: dict[CurrencyPair, str] = {}

        for pair in self.supported_pairs():
            try:
                rates[pair] = await self.fetch_rate(pair)
            except ProviderError as e:
                errors[pair] = str(e)
                logger.warning(f"Failed to fetch rate for {pair}: {e}")

        if not rates:
            raise AllRatesFailedError(errors)

        batch = RateBatch(rates=rates, errors=errors)
        if batch.is_partial:
            logger.warning(
                f"Some exchange rates could not be fetched: "
                f"successful={[str(p) for p in rates]} failed={[str(p) for p in errors]}"
            )
        return batch

    async def is_available(self) -> bool:
        try:
            response = await self._client.get(
                f"{self.base_url}/{self.PING_ENDPOINT}", timeout=self.ping_timeout
            )
            return response.status_code == 200
        except Exception as e:
            logger.warning(f"Binance API availability check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
