"""FastAPI dependencies for authentication and shared resources."""

import secrets
from functools import lru_cache

from fastapi import Header, HTTPException, status

from core.config import QUICKCAL_API_KEY
from services.calendar import GraphCalendar
from services.colors import LabelResolver, build_label_resolver
from services.parser import GeminiEventParser


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not QUICKCAL_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": "INTERNAL_ERROR",
                "details": [],
            },
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_api_key, QUICKCAL_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": "UNAUTHORIZED",
                "details": [],
            },
        )

    return x_api_key


def get_label_resolver() -> LabelResolver:
    return build_label_resolver()


@lru_cache
def get_event_parser() -> GeminiEventParser:
    return GeminiEventParser()


@lru_cache
def get_calendar() -> GraphCalendar:
    return GraphCalendar()
