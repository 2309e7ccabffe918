import logging
import time
import traceback
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette import status as st
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from chat_relay.domain import errors as de
from chat_relay.settings import settings

logger = logging.getLogger(__name__)

ERROR_MESSAGES = {
    'validation_error': 'Invalid request data',
    'request_timeout': 'The request took too long to process',
    'not_found': 'Conversation not found',
    'persistence_error': 'Database error',
    'model_timeout': 'The AI model took too long to respond',
    'model_error': 'Error communicating with the AI model',
    'http_error': 'The requested endpoint or method is not available',
    'unknown_error': 'An unexpected error occurred',
}


@dataclass(frozen=True)
class ErrorClassification:
    status: int
    kind: str

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self.kind]


# DomainError.code -> HTTP status; codes missing here are unknown_error
_STATUS_BY_CODE = {
    'validation_error': st.HTTP_400_BAD_REQUEST,
    'request_timeout': st.HTTP_408_REQUEST_TIMEOUT,
    'not_found': st.HTTP_404_NOT_FOUND,
    'model_timeout': st.HTTP_504_GATEWAY_TIMEOUT,
    'model_error': st.HTTP_502_BAD_GATEWAY,
    'persistence_error': st.HTTP_500_INTERNAL_SERVER_ERROR,
}

_UNKNOWN = ErrorClassification(st.HTTP_500_INTERNAL_SERVER_ERROR, 'unknown_error')


def classify_error(exc: BaseException) -> ErrorClassification:
    if isinstance(exc, RequestValidationError):
        return ErrorClassification(st.HTTP_400_BAD_REQUEST, 'validation_error')
    if isinstance(exc, de.DomainError):
        status = _STATUS_BY_CODE.get(exc.code)
        if status is None:
            return _UNKNOWN
        return ErrorClassification(status, exc.code)
    if isinstance(exc, StarletteHTTPException):
        # routing failures raised by the framework (404 path, 405 method)
        return ErrorClassification(exc.status_code, 'http_error')
    return _UNKNOWN


def request_id_of(request: Request) -> str:
    return getattr(request.state, 'request_id', None) or '-'


def _details(request: Request, exc: BaseException) -> dict:
    details = {
        'type': type(exc).__name__,
        'message': str(exc),
    }
    started: Optional[float] = getattr(request.state, 'started_at', None)
    if started is not None:
        details['processingTime'] = f'{(time.monotonic() - started) * 1000:.0f}ms'
    if isinstance(exc, RequestValidationError):
        details['errors'] = [
            {'loc': list(e.get('loc', ())), 'msg': e.get('msg')} for e in exc.errors()
        ]
    if exc.__traceback__ is not None:
        details['stack'] = ''.join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return details


def build_error_response(request: Request, exc: BaseException) -> JSONResponse:
    """Classify `exc` and render the public error shape."""
    classification = classify_error(exc)
    rid = request_id_of(request)

    if classification is _UNKNOWN:
        logger.error(
            '[error] rid=%s %s %s unclassified failure',
            rid, request.method, request.url.path, exc_info=exc,
        )
    else:
        logger.warning(
            '[error] rid=%s %s %s -> %d %s: %s',
            rid, request.method, request.url.path,
            classification.status, classification.kind, exc,
        )

    content = {
        'status': classification.status,
        'error': classification.kind,
        'errorMessage': classification.message,
        'requestId': rid,
    }
    if not settings.is_production:
        content['details'] = _details(request, exc)

    headers = dict(getattr(exc, 'headers', None) or {})
    headers['X-Request-ID'] = rid
    return JSONResponse(
        status_code=classification.status,
        content=content,
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(de.DomainError)
    async def _domain_error(request: Request, exc: de.DomainError):
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def _400_validation(request: Request, exc: RequestValidationError):
        return build_error_response(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return build_error_response(request, exc)
