import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from relaycast.api.errors import (
    app_error_handler,
    app_validation_exception_handler,
    media_control_error_handler,
)
from relaycast.app_config import get_app_environ_config
from relaycast.schemas.init_schemas import init_schema
from relaycast.services.integrations.media_control import MediaControlError
from relaycast.shared.api.utils import api_failure, init_logger, load_routes
from relaycast.shared.storage.mongo import get_mongo_manager
from relaycast.utils.app_errors import AppError, AppErrorCode


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000

            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.E_INTERNAL_ERROR.value,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(),
            )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    # Initialize MongoDB schemas and Beanie ODM
    await init_schema()

    load_routes(server, "/api/v1")

    cfg = get_app_environ_config()
    if cfg.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=cfg.LOGFIRE_TOKEN,
            service_name="relaycast",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=False)

        logger.info("Logfire instrument mongo")
        logfire.instrument_pymongo(capture_statement=cfg.DEBUG)

        logger.info("Logfire instrument httpx")
        logfire.instrument_httpx()

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    get_mongo_manager().close()


app = FastAPI(
    version="1.0",
    title="Relaycast API",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=get_app_environ_config().API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore
app.add_exception_handler(MediaControlError, media_control_error_handler)  # type: ignore


def build_granian_kwargs():
    cfg = get_app_environ_config()
    kwargs = {
        "interface": "asgi",
        "address": cfg.API_HOST,
        "port": cfg.API_PORT,
        "workers": cfg.API_WORKERS,
        "reload": cfg.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("relaycast.main:app", **granian_kwargs).serve()
