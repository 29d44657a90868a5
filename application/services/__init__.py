from .ingestion_service import IngestionReport, RateIngestionService, RunStatus
from .rate_query_service import RateQueryService

__all__ = ['IngestionReport', 'RateIngestionService', 'RateQueryService', 'RunStatus']
