"""
Shared-secret guards for admin and automation endpoints.

A static secret in a header or query parameter is a placeholder for real
credentials. When the secret is not configured the guard lets every
request through.
"""

import secrets
from typing import Optional

from fastapi import HTTPException, Request, status

from event_registration.core.config import get_settings
from event_registration.core.logging import get_logger

logger = get_logger(__name__)


def _presented_secret(request: Request, header: str) -> Optional[str]:
    value = request.headers.get(header)
    if value:
        return value
    return request.query_params.get("secret")


def _check(request: Request, expected: Optional[str], header: str, scope: str) -> None:
    if not expected:
        return
    presented = _presented_secret(request, header)
    if presented is None or not secrets.compare_digest(presented, expected):
        logger.warning("unauthorized_request", scope=scope, path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


async def require_admin(request: Request) -> None:
    """FastAPI dependency guarding the admin roster endpoints."""
    _check(request, get_settings().ADMIN_SECRET, "X-Admin-Secret", "admin")


async def require_automation(request: Request) -> None:
    """FastAPI dependency guarding the email template endpoints."""
    _check(request, get_settings().AUTOMATION_SECRET, "X-Automation-Secret", "automation")
