#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Authentication Module for GiftBook AI

Provides:
- User principals with SQLite storage
- JWT token issuing and validation
- FastAPI dependencies for authenticated / optional / admin callers
"""

from .models import User, UserStatus, AccessToken, TokenPayload
from .database import UserDatabase, get_user_db
from .service import AuthService, get_auth_service
from .dependencies import (
    get_current_user,
    get_optional_user,
    require_admin,
)

__all__ = [
    # Models
    'User',
    'UserStatus',
    'AccessToken',
    'TokenPayload',
    # Database
    'UserDatabase',
    'get_user_db',
    # Service
    'AuthService',
    'get_auth_service',
    # Dependencies
    'get_current_user',
    'get_optional_user',
    'require_admin',
]
