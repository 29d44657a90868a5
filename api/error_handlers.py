import logging
import traceback
from datetime import UTC, datetime
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import get_settings
from domain.exceptions.currency import InvalidDateError, RateNotFoundError, ValidationFailedError
from domain.models.currency import CurrencyPair

logger = logging.getLogger(__name__)

VALIDATION_FAILED = 'Validation failed'
INVALID_DATE = 'Invalid date'
NOT_FOUND = 'Not Found'
INTERNAL_SERVER_ERROR = 'Internal Server Error'


def error_response(
	request: Request,
	status_code: int,
	error: str,
	message: str,
	debug: dict | None = None,
) -> JSONResponse:
	content = {
		'error': error,
		'message': message,
		'timestamp': datetime.now(UTC).isoformat(timespec='seconds'),
		'path': request.url.path,
	}
	if debug is not None:
		content['debug'] = debug
	return JSONResponse(status_code=status_code, content=content)


def invalid_pair_message() -> str:
	return f'Invalid pair. Supported pairs: {", ".join(CurrencyPair.values())}'


def format_validation_errors(errors: list[dict]) -> str:
	messages = []
	for err in errors:
		field = str(err.get('loc', ('',))[-1])
		err_type = err.get('type', '')
		if err_type == 'missing':
			messages.append(f'{field.capitalize()} parameter is required')
		elif err_type == 'enum' and field == 'pair':
			messages.append(invalid_pair_message())
		elif err_type == 'string_pattern_mismatch' and field == 'date':
			messages.append('Date must be in YYYY-MM-DD format')
		else:
			messages.append(f'{field}: {err.get("msg", "invalid value")}')
	return ', '.join(messages)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(RequestValidationError)
	async def request_validation_handler(request: Request, exc: RequestValidationError):
		message = format_validation_errors(exc.errors())
		logger.warning(f'Validation error on {request.url.path}: {message}')
		return error_response(request, 400, VALIDATION_FAILED, message)

	@app.exception_handler(InvalidDateError)
	async def invalid_date_handler(request: Request, exc: InvalidDateError):
		logger.warning(f'Invalid date on {request.url.path}: {exc}')
		return error_response(request, 400, INVALID_DATE, str(exc))

	@app.exception_handler(ValidationFailedError)
	async def validation_failed_handler(request: Request, exc: ValidationFailedError):
		logger.warning(f'Validation error on {request.url.path}: {exc}')
		return error_response(request, 400, VALIDATION_FAILED, str(exc))

	@app.exception_handler(RateNotFoundError)
	async def not_found_handler(request: Request, exc: RateNotFoundError):
		return error_response(request, 404, NOT_FOUND, str(exc))

	@app.exception_handler(StarletteHTTPException)
	async def http_exception_handler(request: Request, exc: StarletteHTTPException):
		try:
			category = HTTPStatus(exc.status_code).phrase
		except ValueError:
			category = 'Error'
		return error_response(request, exc.status_code, category, str(exc.detail))

	@app.exception_handler(Exception)
	async def unhandled_exception_handler(request: Request, exc: Exception):
		logger.error(
			f'Unhandled exception on {request.method} {request.url.path}: {exc}', exc_info=exc
		)
		debug = None
		if not get_settings().is_production:
			debug = {
				'exception': type(exc).__name__,
				'traceback': traceback.format_exception(exc)[-5:],
			}
		return error_response(
			request,
			500,
			INTERNAL_SERVER_ERROR,
			'An error occurred while processing the request',
			debug=debug,
		)
