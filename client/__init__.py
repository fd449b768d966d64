"""
Client Module
Python SDK for the CareTrack API
"""

from client.query_cache import QueryCache, QueryKey
from client.api_client import ApiError, CareTrackClient, UnauthorizedError
from client.poller import UnreadNotificationPoller


__all__ = [
    "QueryCache",
    "QueryKey",
    "ApiError",
    "UnauthorizedError",
    "CareTrackClient",
    "UnreadNotificationPoller",
]
