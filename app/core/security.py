import secrets
from typing import Annotated

from fastapi import Header, HTTPException
from loguru import logger

from app.core.config import settings


def require_admin(x_admin_token: Annotated[str | None, Header()] = None) -> None:
    """Allow the request only when ``X-Admin-Token`` matches the configured token."""
    if not settings.admin_token:
        logger.warning("Admin token not configured; admin endpoints are disabled.")
        raise HTTPException(status_code=403, detail="Admin endpoints are disabled")

    if x_admin_token is None or not secrets.compare_digest(x_admin_token, settings.admin_token):
        raise HTTPException(status_code=403, detail="Admin privileges required")
