"""
Server and Authentication Configuration

Read from environment variables (a .env file is loaded by the API module).
Each config is a dataclass with a from_env() factory so tests and scripts
can also construct it directly.
"""

import os
import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

AUTH_MODES = ("none", "api-key", "jwt")

DEFAULT_PORT = 3000
DEFAULT_MAX_UPLOAD_MB = 50


@dataclass
class AuthConfig:
    """Bearer-token authentication settings for one group of endpoints."""
    mode: str = "none"
    api_key: Optional[str] = None
    jwt_secret: Optional[str] = None
    jwt_audience: Optional[str] = None
    jwt_issuer: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str = "WEB") -> "AuthConfig":
        """
        Load settings from <PREFIX>_AUTH_MODE and related variables.

        Args:
            prefix: Variable prefix, e.g. "WEB" for WEB_AUTH_MODE

        Returns:
            AuthConfig; an unknown mode falls back to "none"
        """
        mode_var = f"{prefix}_AUTH_MODE"
        mode = os.getenv(mode_var, "none").strip().lower()

        if mode not in AUTH_MODES:
            logger.warning(
                f'Invalid {mode_var}="{mode}". Falling back to "none". '
                f"Valid options: {', '.join(AUTH_MODES)}"
            )
            return cls(mode="none")

        config = cls(mode=mode)

        if mode == "api-key":
            config.api_key = os.getenv(f"{prefix}_AUTH_API_KEY") or None
            if not config.api_key:
                logger.error(
                    f"{mode_var}=api-key but {prefix}_AUTH_API_KEY is not set. "
                    "Authentication will fail!"
                )

        if mode == "jwt":
            config.jwt_secret = os.getenv(f"{prefix}_AUTH_JWT_SECRET") or None
            config.jwt_audience = os.getenv(f"{prefix}_AUTH_JWT_AUDIENCE") or None
            config.jwt_issuer = os.getenv(f"{prefix}_AUTH_JWT_ISSUER") or None
            if not config.jwt_secret:
                logger.error(
                    f"{mode_var}=jwt but {prefix}_AUTH_JWT_SECRET is not set. "
                    "Authentication will fail!"
                )

        return config


@dataclass
class ServerConfig:
    """HTTP server settings."""
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    upload_dir: Path = field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "policy-search-uploads"
    )
    max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB
    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls) -> "ServerConfig":
        defaults = cls()
        origins = os.getenv("CORS_ORIGIN", "*").split(",")
        upload_dir = os.getenv("UPLOAD_DIR")
        return cls(
            host=os.getenv("HOST", defaults.host),
            port=int(os.getenv("PORT", str(DEFAULT_PORT))),
            cors_origins=[o.strip() for o in origins if o.strip()] or ["*"],
            upload_dir=Path(upload_dir) if upload_dir else defaults.upload_dir,
            max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", str(DEFAULT_MAX_UPLOAD_MB))),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )
