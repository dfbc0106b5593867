"""Base URL reputation provider abstractions.

Providers never raise into the aggregator: every lookup ends in a
``ProviderOutcome`` that is either a verdict or an error reason.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx

from ...logging.structured_logging import debug as log_debug, warning as log_warning


class ReputationError(Exception):
    """Base normalized provider exception."""


class MissingCredentialsError(ReputationError):
    pass


@dataclass(frozen=True)
class ProviderOutcome:
    provider: str
    malicious: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def verdict(cls, provider: str, malicious: bool) -> "ProviderOutcome":
        return cls(provider=provider, malicious=bool(malicious))

    @classmethod
    def failed(cls, provider: str, reason: str) -> "ProviderOutcome":
        return cls(provider=provider, malicious=False, error=reason)


class HttpReputationProvider:
    """Shared request plumbing; subclasses implement ``_lookup``."""
    name = "provider"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _require_key(self) -> str:
        if not self.api_key:
            raise MissingCredentialsError(f"{self.name} api key not configured")
        return self.api_key

    async def _lookup(self, url: str) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError

    async def check(self, url: str) -> ProviderOutcome:
        try:
            malicious = await asyncio.wait_for(self._lookup(url), timeout=self.timeout)
        except MissingCredentialsError:
            log_debug("reputation.provider_skipped", provider=self.name, reason="missing_credentials")
            return ProviderOutcome.failed(self.name, "missing_credentials")
        except (asyncio.TimeoutError, httpx.TimeoutException):
            log_warning("reputation.provider_timeout", provider=self.name, timeout=self.timeout)
            return ProviderOutcome.failed(self.name, "timeout")
        except httpx.HTTPStatusError as e:
            log_warning("reputation.provider_http_error", provider=self.name, status=e.response.status_code)
            return ProviderOutcome.failed(self.name, f"http_{e.response.status_code}")
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            log_warning("reputation.provider_error", provider=self.name, error=str(e))
            return ProviderOutcome.failed(self.name, type(e).__name__)
        return ProviderOutcome.verdict(self.name, malicious)


__all__ = ['ReputationError', 'MissingCredentialsError', 'ProviderOutcome', 'HttpReputationProvider']
