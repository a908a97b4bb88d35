# FILE: config/settings.py
"""
Deployment settings for the assistant hub, read from the environment.

main.py loads .env (python-dotenv) before anything reads these.

    HUB_SIMILARITY_URL          base URL of the similarity service
    HUB_SIMILARITY_TOKEN        bearer token for the similarity service
    HUB_SIMILARITY_TIMEOUT_S    per-request timeout
    HUB_HEALTH_PROBE_TIMEOUT_S  timeout for the one-off health probe
    HUB_SEARCH_LIMIT            top-K hits fetched per batched search
    HUB_LOG_LEVEL               logging level for main.py
    HUB_ROUTER_DEBUG            "1" to log every routing decision at INFO
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    similarity_url: str = "http://localhost:5002"
    similarity_token: str = ""
    similarity_timeout_s: float = 10.0
    health_probe_timeout_s: float = 5.0
    search_limit: int = 10
    log_level: str = "INFO"
    router_debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            similarity_url=os.getenv("HUB_SIMILARITY_URL") or cls.similarity_url,
            similarity_token=os.getenv("HUB_SIMILARITY_TOKEN") or "",
            similarity_timeout_s=float(os.getenv("HUB_SIMILARITY_TIMEOUT_S") or "10"),
            health_probe_timeout_s=float(os.getenv("HUB_HEALTH_PROBE_TIMEOUT_S") or "5"),
            search_limit=int(os.getenv("HUB_SEARCH_LIMIT") or "10"),
            log_level=(os.getenv("HUB_LOG_LEVEL") or "INFO").upper(),
            router_debug=os.getenv("HUB_ROUTER_DEBUG", "0") == "1",
        )


def get_settings() -> Settings:
    """Current settings (re-read from the environment on every call)."""
    return Settings.from_env()


__all__ = [
    "Settings",
    "get_settings",
]
