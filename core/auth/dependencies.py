#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI Dependencies for Authentication

Resolve the caller of a request to a User principal.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .models import User, UserStatus, TokenPayload
from .service import AuthService, get_auth_service

logger = logging.getLogger(__name__)

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service)
) -> TokenPayload:
    """
    Extract and verify JWT token from Authorization header.

    Raises:
        HTTPException 401: If token is missing or invalid
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        return auth_service.verify_access_token(credentials.credentials)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )


async def get_current_user(
    payload: TokenPayload = Depends(get_token_payload),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated, active user.

    Usage:
        @router.get("/history")
        async def history(user: User = Depends(get_current_user)):
            ...
    """
    user = auth_service.get_user(int(payload.sub))

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {user.status.value}"
        )

    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if authenticated, None otherwise.

    Used by read endpoints where public books are visible anonymously;
    an invalid token is treated as anonymous, never as an owner.
    """
    if not credentials:
        return None

    try:
        payload = auth_service.verify_access_token(credentials.credentials)
    except ValueError as e:
        logger.debug("Ignoring invalid bearer token on optional-auth route: %s", e)
        return None

    return auth_service.get_active_user(int(payload.sub))


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency for admin-only endpoints."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
