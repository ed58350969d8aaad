"""Storefront client configuration.

Settings are read from the environment:

    SPORTSHOP_API_URL      base URL of the SportShop API (default http://localhost:8000)
    SPORTSHOP_API_TIMEOUT  request timeout in seconds (default 10)
"""

import os
from dataclasses import dataclass

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ApiSettings:
    base_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ=None) -> "ApiSettings":
        environ = os.environ if environ is None else environ
        timeout = environ.get("SPORTSHOP_API_TIMEOUT")
        return cls(
            base_url=environ.get("SPORTSHOP_API_URL", DEFAULT_API_URL).rstrip("/"),
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
        )
