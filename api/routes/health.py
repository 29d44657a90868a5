import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_database, get_provider
from api.schemas import HealthResponse
from infrastructure.persistence.database import Database
from infrastructure.providers.binance import BinanceProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api', tags=['health'])


@router.get(
	'/health',
	response_model=HealthResponse,
	summary='System health check',
)
async def health_check(
	db: Annotated[Database, Depends(get_database)],
	provider: Annotated[BinanceProvider, Depends(get_provider)],
) -> HealthResponse:
	"""
	Reports database connectivity and upstream price feed availability.
	Overall status is 'healthy' only when both are up.
	"""
	services = {}

	try:
		await db.ping()
		services['database'] = {'status': 'healthy'}
	except Exception as e:
		logger.error(f'Database health check failed: {e}')
		services['database'] = {'status': 'unhealthy', 'error': 'Connection failed'}

	upstream_up = await provider.is_available()
	services['upstream'] = {
		'status': 'healthy' if upstream_up else 'unhealthy',
		'provider': provider.name,
	}

	healthy = all(s['status'] == 'healthy' for s in services.values())
	return HealthResponse(
		status='healthy' if healthy else 'degraded',
		timestamp=datetime.now(UTC).isoformat(timespec='seconds'),
		services=services,
	)
