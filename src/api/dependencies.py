"""FastAPI dependencies for authentication and shared resources."""

import secrets
from collections.abc import Callable
from datetime import date

from fastapi import Header, HTTPException, status

from api.models.responses import ErrorCodes
from core.config import TT_API_KEY
from core.config_loader import load_settle_config
from core.errors import ConfigError
from models.config import SettleConfig
from services.settle import SettleSources, open_sources

SourcesFactory = Callable[[SettleConfig, date, date], SettleSources]


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not TT_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_api_key, TT_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": ErrorCodes.UNAUTHORIZED,
                "details": [],
            },
        )

    return x_api_key


def get_settle_config() -> SettleConfig:
    """
    Load the rules file for each request so edits apply without a restart.

    Raises:
        HTTPException: 500 if the rules file is missing or invalid
    """
    try:
        return load_settle_config()
    except (FileNotFoundError, ConfigError) as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Server configuration error",
                "code": ErrorCodes.CONFIG_ERROR,
                "details": [line for line in str(e).split("\n") if line.strip()],
            },
        )


def get_sources_factory() -> SourcesFactory:
    return open_sources
