"""Backend endpoint configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_BASE_URL = "http://localhost:8080/api"
DEFAULT_AUTH_URL = "http://localhost:8080/api/login_check"
DEFAULT_TIMEOUT_S = 10.0


def _default_headers() -> dict[str, str]:
    return {
        "Content-Type": "application/ld+json",
        "Accept": "application/ld+json",
    }


@dataclass
class ApiConfig:
    """Where and how to reach the pharmacy REST backend.

    Attributes:
        base_url: Root of the REST API, without trailing slash.
        auth_url: Login endpoint returning a JWT.
        timeout_s: Per-request timeout in seconds.
        headers: Headers sent with every request.
    """

    base_url: str = DEFAULT_BASE_URL
    auth_url: str = DEFAULT_AUTH_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    headers: dict[str, str] = field(default_factory=_default_headers)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {self.timeout_s}")

    @classmethod
    def from_env(cls) -> "ApiConfig":
        """Build a config from PHARMA_API_URL, PHARMA_AUTH_URL and PHARMA_API_TIMEOUT."""
        raw_timeout = os.getenv("PHARMA_API_TIMEOUT")
        try:
            timeout_s = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_S
        except ValueError:
            timeout_s = DEFAULT_TIMEOUT_S
        return cls(
            base_url=os.getenv("PHARMA_API_URL", DEFAULT_BASE_URL),
            auth_url=os.getenv("PHARMA_AUTH_URL", DEFAULT_AUTH_URL),
            timeout_s=timeout_s,
        )
