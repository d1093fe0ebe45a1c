#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management
"""

import warnings
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

INSECURE_SECRETS = [
    "INSECURE-DEV-JWT-SECRET-CHANGE-IN-PRODUCTION",
    "change-this-in-production",
]


class Settings(BaseSettings):
    """Application settings"""

    # ========== Text Generation (OpenAI) ==========
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    generation_max_tokens: int = 3000  # must fit the model's completion limit
    generation_temperature: float = 0.8
    generation_timeout_seconds: float = 1800.0  # long-form stories take minutes

    # ========== Database ==========
    database_dir: Path = BASE_DIR / "data"
    database_name: str = "giftbook"

    # ========== Directories ==========
    pdf_output_dir: Path = BASE_DIR / "generated-pdfs"
    logs_dir: Path = BASE_DIR / "data" / "logs"

    # ========== Security ==========
    # Security mode: development | production
    security_mode: str = "development"
    # ⚠️ SECURITY: MUST be changed via JWT_SECRET_KEY env var in production!
    jwt_secret_key: str = "INSECURE-DEV-JWT-SECRET-CHANGE-IN-PRODUCTION"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Default administrator principal (created on first start)
    admin_email: str = "admin@giftbook.local"
    admin_name: str = "System Administrator"

    # CORS origins (comma-separated in env, parsed to list)
    cors_origins: str = ""  # Empty = use default dev origins

    # ========== Rate Limiting ==========
    rate_limit_enabled: bool = True
    rate_limit: str = "60/minute"
    book_create_rate_limit: str = "10/minute"  # every call hits the text provider

    # ========== Logging ==========
    log_level: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from .env that aren't defined in model

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._validate_security_settings()

    def prepare_directories(self):
        """Create data directories. Safe to call from concurrent startups."""
        for dir_path in [
            self.database_dir,
            self.pdf_output_dir,
            self.logs_dir,
        ]:
            dir_path.mkdir(exist_ok=True, parents=True)

    def _validate_security_settings(self):
        """Validate security settings for production mode."""
        if self.security_mode == "production":
            errors = []

            if self.jwt_secret_key in INSECURE_SECRETS:
                errors.append(
                    "JWT_SECRET_KEY must be set to a secure value in production! "
                    "Generate with: python -c \"import secrets; print(secrets.token_hex(32))\""
                )

            if len(self.jwt_secret_key) < 32:
                errors.append(
                    "JWT_SECRET_KEY must be at least 32 characters in production!"
                )

            if not self.cors_origins:
                errors.append(
                    "CORS_ORIGINS must be explicitly set in production! "
                    "Example: CORS_ORIGINS=https://yourdomain.com,https://app.yourdomain.com"
                )

            if errors:
                raise ValueError(
                    "SECURITY ERROR - Production mode requires secure configuration:\n"
                    + "\n".join(f"  - {e}" for e in errors)
                )

        elif self.jwt_secret_key in INSECURE_SECRETS:
            warnings.warn(
                "Running with the default JWT secret. "
                "Set JWT_SECRET_KEY env var for production.",
                UserWarning
            )

    def get_cors_origins(self) -> List[str]:
        """Get CORS origins as a list. Falls back to dev defaults if empty."""
        if self.cors_origins:
            return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        # Dev defaults
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://127.0.0.1:8080",
        ]

    @property
    def database_path(self) -> Path:
        return self.database_dir / f"{self.database_name}.db"


# Global settings instance
settings = Settings()
