from .client import (
    ComplaintsApiBadResponse,
    ComplaintsApiClient,
    ComplaintsApiError,
    ComplaintsApiTimeout,
)

__all__ = [
    "ComplaintsApiClient",
    "ComplaintsApiError",
    "ComplaintsApiTimeout",
    "ComplaintsApiBadResponse",
]
