"""
Authentication dependencies for FastAPI routes.
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from matchreel.services import settings_service

logger = logging.getLogger(__name__)

ADMIN_REALM = "Admin Area"

security = HTTPBasic(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": f'Basic realm="{ADMIN_REALM}"'},
    )


async def require_admin(
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
) -> str:
    """
    Dependency guarding every admin route with HTTP Basic auth.

    Returns:
        The admin username

    Raises:
        HTTPException: 500 if the admin credential is not configured,
            401 if credentials are missing or wrong
    """
    admin_user, admin_password = settings_service.get_admin_credentials()
    if not admin_user or not admin_password:
        logger.error("ADMIN_USER or ADMIN_PASSWORD is not set")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )

    if credentials is None:
        raise _unauthorized("Authentication required")

    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), admin_user.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), admin_password.encode("utf-8")
    )
    if not (user_ok and password_ok):
        raise _unauthorized("Invalid credentials")

    return credentials.username
