from config.settings import Settings

from .binance import BinanceProvider


def create_provider(settings: Settings) -> BinanceProvider:
    return BinanceProvider(
        base_url=settings.BINANCE_BASE_URL,
        timeout=settings.BINANCE_TIMEOUT,
        ping_timeout=settings.BINANCE_PING_TIMEOUT,
        user_agent=settings.BINANCE_USER_AGENT,
    )


__all__ = ['BinanceProvider', 'create_provider']
