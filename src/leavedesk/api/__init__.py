"""Response envelope models consumed by the remote-call layer."""

from leavedesk.api.envelope import (
    ApiError,
    ApiResponse,
    ApiStatus,
    PageMeta,
    PaginatedResponse,
    RemoteCallError,
    unwrap_response,
)

__all__ = [
    "ApiError",
    "ApiResponse",
    "ApiStatus",
    "PageMeta",
    "PaginatedResponse",
    "RemoteCallError",
    "unwrap_response",
]
