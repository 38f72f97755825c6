from typing import Generic, TypeVar

from pydantic import BaseModel

from relaycast.shared.api.utils import ApiSuccess

T = TypeVar("T")


class ApiOut(ApiSuccess, Generic[T]):
    """Standard API envelope used by public routers."""

    results: T  # type: ignore[valid-type]


class DeletedOut(BaseModel):
    """Result of deleting a stream, stream app or stream key."""

    deleted: bool
