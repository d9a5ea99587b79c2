"""Provider capability interface, per-call cancellation, and the JSON fetcher."""

import logging
import threading
import time
from abc import ABC, abstractmethod

import requests
from pydantic import BaseModel, Field, field_validator

from sourcefinder.core.errors import ProviderError
from sourcefinder.search.models import Source

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 8.0
DEFAULT_LIMIT = 10
MAX_LIMIT = 25
DEFAULT_USER_AGENT = "sourcefinder/1.0"


class SearchOptions(BaseModel):
    """Per-call knobs handed to every provider."""

    limit: int = DEFAULT_LIMIT
    contact_email: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, v):
        if not isinstance(v, int) or isinstance(v, bool):
            return DEFAULT_LIMIT
        return max(1, min(v, MAX_LIMIT))

    @field_validator("contact_email", "user_agent", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else ""

    @property
    def headers(self) -> dict:
        return {
            "Accept": "application/json",
            "User-Agent": self.user_agent or DEFAULT_USER_AGENT,
        }


class CancellationToken:
    """Explicit cancellation signal for one outbound call.

    The caller owns the token: it fixes a deadline up front and may cancel
    early. The fetcher reads the remaining budget rather than a global timer.
    """

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self._event = threading.Event()
        self.timeout_seconds = timeout_seconds
        self.deadline = time.monotonic() + timeout_seconds

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> float:
        return max(0.0, self.deadline - time.monotonic())


class SourceProvider(ABC):
    """One bibliographic data source.

    New providers implement this interface; the orchestrator never branches
    on provider identity.
    """

    name: str = "provider"

    @abstractmethod
    def search(
        self,
        claim: str,
        options: SearchOptions,
        token: CancellationToken | None = None,
    ) -> list[Source]:
        """Return usable Source records for the claim or raise ProviderError."""


# ── HTTP ─────────────────────────────────────────────────────────────


def fetch_json(
    provider: str,
    url: str,
    params: dict,
    headers: dict,
    token: CancellationToken,
):
    """Issue one GET bounded by the token's remaining budget.

    Every failure mode is reported as a ProviderError. No retries.
    """
    if token.cancelled:
        raise ProviderError(provider, "request cancelled before it started")
    budget = token.remaining()
    if budget <= 0:
        raise ProviderError(provider, "request deadline already passed", timed_out=True)

    try:
        response = requests.get(url, params=params, headers=headers, timeout=budget)
    except requests.Timeout as exc:
        raise ProviderError(
            provider, f"timed out after {token.timeout_seconds:g}s", timed_out=True
        ) from exc
    except requests.RequestException as exc:
        raise ProviderError(provider, f"request failed: {exc}") from exc

    if token.cancelled:
        raise ProviderError(provider, "request cancelled")

    if not 200 <= response.status_code < 300:
        raise ProviderError(provider, f"request failed (HTTP {response.status_code})")

    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(provider, "response was not valid JSON") from exc
