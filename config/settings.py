from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	DATABASE_URL: str = 'sqlite+aiosqlite:///./crypto_rates.db'

	BINANCE_BASE_URL: str = 'https://api.binance.com/api/v3'
	BINANCE_TIMEOUT: float = 10.0
	BINANCE_PING_TIMEOUT: float = 5.0
	BINANCE_USER_AGENT: str = 'CryptoRatesAPI/1.0'

	# Retention
	RETENTION_DAYS: int = 30

	# Application
	APP_NAME: str = 'Crypto Rates API'
	ENVIRONMENT: str = 'production'

	# Logging
	LOG_LEVEL: str = 'INFO'
	LOG_JSON: bool = False
	LOG_DIRECTORY: str = ''

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')

	@property
	def is_production(self) -> bool:
		return self.ENVIRONMENT.lower() == 'production'


@lru_cache
def get_settings() -> Settings:
	return Settings()
