"""
Client configuration.

Configuration can be loaded from environment variables or provided
programmatically.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .exceptions import ConfigurationError


@dataclass
class ClientConfig:
    """
    Configuration for an authrelay client.

    Attributes:
        base_url: API base URL that relative request paths are joined to
        timeout: Transport timeout in seconds
        token_file: Token file path (tokens kept in memory if not set)
        refresh_url: Refresh endpoint used by the default refresher
        log_traffic: Log requests and responses at DEBUG level
        expired_status_codes: Statuses that trigger a token refresh
        refresh_timeout: Longest wait for an in-flight refresh (None = no limit)
    """

    base_url: str
    timeout: float = 30
    token_file: Optional[str] = None
    refresh_url: Optional[str] = None
    log_traffic: bool = False
    expired_status_codes: Tuple[int, ...] = (401,)
    refresh_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.base_url:
            raise ConfigurationError("base_url cannot be empty")

        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"base_url must be an http(s) URL, got {self.base_url!r}")

        self.base_url = self.base_url.rstrip("/")

        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")

        if self.refresh_timeout is not None and self.refresh_timeout <= 0:
            raise ConfigurationError(
                f"refresh_timeout must be positive, got {self.refresh_timeout}"
            )

        if not self.expired_status_codes:
            raise ConfigurationError("expired_status_codes cannot be empty")

        for code in self.expired_status_codes:
            if not 400 <= code < 500:
                raise ConfigurationError(
                    f"expired_status_codes must be 4xx statuses, got {code}"
                )

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            AUTHRELAY_BASE_URL: API base URL

        Optional environment variables:
            AUTHRELAY_TIMEOUT: Transport timeout in seconds (default: 30)
            AUTHRELAY_TOKEN_FILE: Token file path (default: in-memory tokens)
            AUTHRELAY_REFRESH_URL: Refresh endpoint URL
            AUTHRELAY_LOG_TRAFFIC: "1"/"true"/"yes" to log traffic (default: off)
            AUTHRELAY_EXPIRED_STATUS_CODES: Comma-separated statuses that trigger
                a token refresh (default: 401)
            AUTHRELAY_REFRESH_TIMEOUT: Longest wait for a token refresh in
                seconds (default: no limit)

        Returns:
            ClientConfig instance

        Raises:
            ConfigurationError: If required variables are missing or invalid
        """
        base_url = os.environ.get("AUTHRELAY_BASE_URL")
        if not base_url:
            raise ConfigurationError(
                "Missing API base URL. Set environment variable:\n"
                "  AUTHRELAY_BASE_URL=https://api.example.com"
            )

        try:
            timeout = float(os.environ.get("AUTHRELAY_TIMEOUT", "30"))
        except ValueError as e:
            raise ConfigurationError(f"AUTHRELAY_TIMEOUT must be a number: {e}") from e

        try:
            expired_status_codes = tuple(
                int(code)
                for code in os.environ.get("AUTHRELAY_EXPIRED_STATUS_CODES", "401").split(",")
                if code.strip()
            )
        except ValueError as e:
            raise ConfigurationError(
                f"AUTHRELAY_EXPIRED_STATUS_CODES must be comma-separated integers: {e}"
            ) from e

        refresh_timeout_env = os.environ.get("AUTHRELAY_REFRESH_TIMEOUT")
        try:
            refresh_timeout = float(refresh_timeout_env) if refresh_timeout_env else None
        except ValueError as e:
            raise ConfigurationError(f"AUTHRELAY_REFRESH_TIMEOUT must be a number: {e}") from e

        return cls(
            base_url=base_url,
            timeout=timeout,
            token_file=os.environ.get("AUTHRELAY_TOKEN_FILE") or None,
            refresh_url=os.environ.get("AUTHRELAY_REFRESH_URL") or None,
            log_traffic=os.environ.get("AUTHRELAY_LOG_TRAFFIC", "").lower() in ("1", "true", "yes"),
            expired_status_codes=expired_status_codes,
            refresh_timeout=refresh_timeout,
        )
