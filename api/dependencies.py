import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from application.services.rate_query_service import RateQueryService
from config.settings import Settings, get_settings
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.currency import RateRepository
from infrastructure.providers import BinanceProvider, create_provider

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	db: Database | None = None
	provider: BinanceProvider | None = None


deps = AppDependencies()


def init_dependencies(settings: Settings | None = None) -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = settings or get_settings()

	deps.db = Database(settings.DATABASE_URL)
	deps.provider = create_provider(settings)
	logger.info('Dependencies initialized')


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.provider:
		await deps.provider.close()
	if deps.db:
		await deps.db.close()

	deps.provider = None
	deps.db = None
	logger.info('Cleanup complete')


def get_database() -> Database:
	if deps.db is None:
		raise RuntimeError('Database is not initialized')
	return deps.db


def get_provider() -> BinanceProvider:
	if deps.provider is None:
		raise RuntimeError('Rate provider is not initialized')
	return deps.provider


async def get_db_session(
	db: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession, None]:
	# Read-only request handlers; the transaction is only committed to release it
	async with db.session() as session:
		yield session


async def get_rate_repository(
	session: Annotated[AsyncSession, Depends(get_db_session)],
) -> RateRepository:
	return RateRepository(db_session=session)


async def get_rate_query_service(
	repository: Annotated[RateRepository, Depends(get_rate_repository)],
) -> RateQueryService:
	return RateQueryService(repository=repository)
