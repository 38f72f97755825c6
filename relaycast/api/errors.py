from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from relaycast.services.integrations.media_control import (
    ConfigurationError,
    MediaControlError,
    RemoteRejectionError,
)
from relaycast.shared.api.errors import E_INVALID_PARAMS
from relaycast.shared.api.utils import ApiFailure, api_failure, make_response
from relaycast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Custom exception handler for AppError.
    Converts AppError to ApiFailure and returns via make_response.
    """
    # Log with the caller info captured when AppError was raised
    log_msg = f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
    if exc.status_code >= 500:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(errcode=exc.errcode, errmesg=exc.errmesg, erresid=exc.erresid)
    return make_response(failure, status_code=exc.status_code)


def media_control_failure(exc: MediaControlError) -> tuple[AppErrorCode, HttpStatusCode]:
    """Map a media-control failure to the errcode and status the API answers with."""
    if isinstance(exc, ConfigurationError):
        return AppErrorCode.E_MEDIA_CONTROL_NOT_CONFIGURED, HttpStatusCode.SERVICE_UNAVAILABLE
    if isinstance(exc, RemoteRejectionError):
        return AppErrorCode.E_MEDIA_CONTROL_REJECTED, HttpStatusCode.BAD_GATEWAY
    return AppErrorCode.E_MEDIA_CONTROL_UNREACHABLE, HttpStatusCode.SERVICE_UNAVAILABLE


async def media_control_error_handler(request: Request, exc: MediaControlError) -> JSONResponse:
    """
    Exception handler for media-control failures that reach the API.
    Only diagnostic endpoints let them through; lifecycle operations degrade instead.
    """
    errcode, status_code = media_control_failure(exc)
    logger.warning(f"{errcode} {request.method} {request.url.path}: {exc}")

    failure = ApiFailure(errcode=errcode.value, errmesg=str(exc))
    return make_response(failure, status_code=status_code)


async def app_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path,
        request.method,
        errors,
    )

    failure = api_failure(E_INVALID_PARAMS, errmesg=str(errors))
    return make_response(failure, status_code=HttpStatusCode.UNPROCESSABLE_ENTITY)
