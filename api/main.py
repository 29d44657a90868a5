import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.dependencies import cleanup_dependencies, deps, init_dependencies
from api.error_handlers import register_exception_handlers
from api.routes import health, rates
from config.settings import get_settings
from infrastructure.monitoring.logger import setup_logging

logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
	setup_logging(settings)
	logger.info(f'Starting {settings.APP_NAME}...')

	init_dependencies(settings)
	if deps.db is None:
		raise RuntimeError('Database not initialized')

	await deps.db.wait_until_ready()
	await deps.db.create_tables()
	logger.info('Database tables created')

	logger.info('Application ready')

	yield

	logger.info('Shutting down...')
	await cleanup_dependencies()


app = FastAPI(title=settings.APP_NAME, version='1.0.0', lifespan=lifespan)

app.include_router(rates.router)
app.include_router(health.router)
register_exception_handlers(app)


def run() -> None:
	import os

	import uvicorn

	host = os.getenv('HOST', '0.0.0.0')
	port = int(os.getenv('PORT', 8000))

	logger.info(f'Starting server on {host}:{port}')
	uvicorn.run(
		'api.main:app',
		host=host,
		port=port,
		reload=settings.ENVIRONMENT == 'development',
		log_level=settings.LOG_LEVEL.lower(),
	)


if __name__ == '__main__':
	run()
