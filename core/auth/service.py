#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Authentication Service

Provides:
- JWT access token generation and validation
- Principal lookup for the book pipeline
- Default administrator bootstrap
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from .models import User, UserStatus, AccessToken, TokenPayload
from .database import UserDatabase, get_user_db

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service."""

    def __init__(
        self,
        db: Optional[UserDatabase] = None,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ):
        """Initialize auth service."""
        from config.settings import settings

        self.db = db or get_user_db()
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expire_minutes = expire_minutes or settings.access_token_expire_minutes
        self._ensure_admin_exists(settings.admin_email, settings.admin_name)

    def _ensure_admin_exists(self, email: str, name: str):
        """Ensure default admin user exists."""
        if not self.db.get_user_by_email(email):
            self.db.create_user(User(email=email, name=name, is_admin=True))
            logger.warning(f"Default admin principal created: {email}")

    # ========================================================================
    # Token Operations
    # ========================================================================

    def create_access_token(self, user: User) -> AccessToken:
        """Create a signed access token for user."""
        now = datetime.now(timezone.utc)
        expires = now + timedelta(minutes=self.expire_minutes)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "is_admin": user.is_admin,
            "exp": expires,
            "iat": now,
            "type": "access",
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

        return AccessToken(
            access_token=token,
            expires_in=self.expire_minutes * 60,
        )

    def verify_access_token(self, token: str) -> TokenPayload:
        """
        Verify access token and return payload.

        Raises:
            ValueError: If token is invalid or expired
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise ValueError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise ValueError(f"Invalid token: {e}")

        if payload.get("type") != "access":
            raise ValueError("Invalid token type")

        try:
            return TokenPayload(
                sub=payload["sub"],
                email=payload["email"],
                is_admin=payload.get("is_admin", False),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                type=payload["type"],
            )
        except KeyError as e:
            raise ValueError(f"Invalid token: missing claim {e}")

    # ========================================================================
    # User Operations
    # ========================================================================

    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self.db.get_user_by_id(user_id)

    def get_active_user(self, user_id: int) -> Optional[User]:
        """Get user by ID if the account is active."""
        user = self.db.get_user_by_id(user_id)
        if user and user.status == UserStatus.ACTIVE:
            return user
        return None


# Global instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get global auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
