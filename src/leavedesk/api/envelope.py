"""Response envelope returned by every remote-call function.

The backend wraps each payload as::

    {"status": "SUCCESS" | "FAILED" | "ERROR",
     "data": ...,
     "message": "...",
     "error": {"code": "...", "message": "..."}}

A response is successful only when ``status`` is ``SUCCESS`` and ``data``
is present. Anything else is turned into a RemoteCallError.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

UNKNOWN_ERROR_CODE = "UNKNOWN_ERROR"


class ApiStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    ERROR = "ERROR"


class ApiError(BaseModel):
    """Error body attached to a failed envelope."""

    model_config = ConfigDict(extra="allow")

    code: str
    message: str
    details: Any = None
    field: str | None = None
    timestamp: str | None = None


class ApiResponse(BaseModel, Generic[T]):
    """Generic response envelope."""

    model_config = ConfigDict(extra="allow")

    status: str
    data: T | None = None
    message: str | None = None
    error: ApiError | None = None
    timestamp: str | None = None
    path: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == ApiStatus.SUCCESS.value and self.data is not None


class RemoteCallError(Exception):
    """A remote call answered with a failed envelope.

    Carries the server's ``code`` and ``message`` so the classifier can
    resolve it through the API code table.
    """

    def __init__(self, code: str, message: str, details: Any = None) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"{code}: {message}")

    @classmethod
    def from_response(cls, response: ApiResponse[Any]) -> RemoteCallError:
        """Build the error for a non-successful envelope.

        Uses the envelope's error body when present, otherwise an
        UNKNOWN_ERROR carrying the envelope message.
        """
        if response.error is not None:
            return cls(
                code=response.error.code,
                message=response.error.message,
                details=response.error.details,
            )
        return cls(
            code=UNKNOWN_ERROR_CODE,
            message=response.message or "Unknown error",
            details={"status": response.status},
        )


class PageMeta(BaseModel):
    """Pagination block on list responses."""

    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0, alias="totalPages")
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")

    model_config = ConfigDict(populate_by_name=True)


class PaginatedResponse(ApiResponse[list[T]], Generic[T]):
    pagination: PageMeta | None = None


def unwrap_response(response: ApiResponse[T] | Mapping[str, Any]) -> T:
    """Return the payload of a successful envelope.

    Args:
        response: An ApiResponse or a raw mapping in envelope shape.

    Returns:
        The envelope's data.

    Raises:
        RemoteCallError: The envelope reports failure or carries no data.
        pydantic.ValidationError: ``response`` is not envelope-shaped.
    """
    if not isinstance(response, ApiResponse):
        response = ApiResponse[Any].model_validate(response)
    if response.is_success:
        return response.data  # type: ignore[return-value]
    raise RemoteCallError.from_response(response)
