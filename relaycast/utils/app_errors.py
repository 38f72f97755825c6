"""Application error types shared by the domain and API layers."""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class HttpStatusCode(IntEnum):
    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503


class AppErrorCode(str, Enum):
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_BAD_TOKEN = "E_BAD_TOKEN"
    E_CONFLICT = "E_CONFLICT"
    E_INVALID_TRANSITION = "E_INVALID_TRANSITION"

    E_STREAM_NOT_FOUND = "E_STREAM_NOT_FOUND"
    E_STREAM_APP_NOT_FOUND = "E_STREAM_APP_NOT_FOUND"
    E_STREAM_KEY_NOT_FOUND = "E_STREAM_KEY_NOT_FOUND"
    E_STREAM_APP_INACTIVE = "E_STREAM_APP_INACTIVE"
    E_STREAM_APP_IN_USE = "E_STREAM_APP_IN_USE"
    E_STREAM_KEY_IN_USE = "E_STREAM_KEY_IN_USE"

    E_MEDIA_CONTROL_NOT_CONFIGURED = "E_MEDIA_CONTROL_NOT_CONFIGURED"
    E_MEDIA_CONTROL_UNREACHABLE = "E_MEDIA_CONTROL_UNREACHABLE"
    E_MEDIA_CONTROL_REJECTED = "E_MEDIA_CONTROL_REJECTED"

    def __str__(self) -> str:
        return self.value


def _caller_info() -> str:
    """Return module:function:line of the first frame outside this module."""
    frame = inspect.currentframe()
    try:
        while frame is not None and frame.f_globals.get("__name__") == __name__:
            frame = frame.f_back
        if frame is None:
            return "unknown"
        module_name = frame.f_globals.get("__name__") or frame.f_code.co_filename
        return f"{module_name}:{frame.f_code.co_name}:{frame.f_lineno}"
    finally:
        del frame


class AppError(Exception):
    """Error carrying an API errcode and the HTTP status it maps to.

    `caller_info` is captured at raise site so the exception handler can log
    where the error originated.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str = AppErrorCode.E_INTERNAL_ERROR,
        errmesg: str = "We are sorry, an error occurred.",
        status_code: HttpStatusCode | int = HttpStatusCode.BAD_REQUEST,
    ):
        super().__init__(errmesg)
        self.errcode = errcode.value if isinstance(errcode, AppErrorCode) else str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]
        self.caller_info = _caller_info()

    def __str__(self) -> str:
        return self.errmesg


class ValidationError(AppError):
    """Malformed input rejected before any persistence or remote call."""

    def __init__(self, errmesg: str, field: str | None = None):
        super().__init__(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg=errmesg,
            status_code=HttpStatusCode.BAD_REQUEST,
        )
        self.field = field


class NotFoundError(AppError):
    """Entity is absent or owned by someone else.

    Both cases are reported identically so callers cannot probe for other
    users' resources.
    """

    def __init__(self, errmesg: str, errcode: AppErrorCode = AppErrorCode.E_STREAM_NOT_FOUND):
        super().__init__(
            errcode=errcode,
            errmesg=errmesg,
            status_code=HttpStatusCode.NOT_FOUND,
        )


class ConflictError(AppError):
    def __init__(self, errmesg: str, errcode: AppErrorCode = AppErrorCode.E_CONFLICT):
        super().__init__(
            errcode=errcode,
            errmesg=errmesg,
            status_code=HttpStatusCode.CONFLICT,
        )


__all__ = [
    "AppError",
    "AppErrorCode",
    "ConflictError",
    "HttpStatusCode",
    "NotFoundError",
    "ValidationError",
]
