#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Authentication Models

Principal and token models consumed by the book pipeline.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserStatus(str, Enum):
    """User account status."""
    ACTIVE = "active"
    SUSPENDED = "suspended"


class User(BaseModel):
    """User model. Books reference a user by id only."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    email: str
    name: str

    # Access control
    is_admin: bool = False
    status: UserStatus = UserStatus.ACTIVE

    created_at: datetime = Field(default_factory=datetime.now)


class AccessToken(BaseModel):
    """Issued bearer token."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class TokenPayload(BaseModel):
    """JWT token payload."""
    sub: str          # user_id
    email: str
    is_admin: bool = False
    exp: datetime     # expiration
    iat: datetime     # issued at
    type: str         # "access"
