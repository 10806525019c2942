"""
NAS API Layer.

This package handles all communication with the Download Station web API.
"""

from .auth import DownloadSession, NasAuthenticator
from .client import NasClient
from .results import ApiError, ApiResult, HttpStatusError, Success, TransportError

__all__ = [
    "ApiError",
    "ApiResult",
    "DownloadSession",
    "HttpStatusError",
    "NasAuthenticator",
    "NasClient",
    "Success",
    "TransportError",
]
