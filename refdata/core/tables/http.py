"""
HTTP client for the table API.

Wraps a synchronous ``httpx.Client`` with API key injection, retries with
exponential backoff, and translation of transport failures into
:class:`TransportError`. The base URL and transport are passed in explicitly,
so tests inject an ``httpx.MockTransport`` instead of patching globals.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger

from refdata.core.config import DEFAULT_BASE_URL, RefDataConfig
from refdata.core.exceptions import TransportError


@dataclass
class HttpConfig:
    """Configuration for HTTP client behavior."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    timeout: float = 60.0
    max_redirects: int = 5
    user_agent: str = "refdata/0.1.0"
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("base_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be non-negative")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    backoff_factor: float = 2.0
    retry_on_status: list[int] = field(default_factory=lambda: [429, 502, 503, 504])
    retry_on_exceptions: list[type] = field(
        default_factory=lambda: [httpx.TimeoutException, httpx.ConnectError]
    )

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.backoff_factor <= 0:
            raise ValueError("backoff_factor must be positive")


class HttpClient:
    """Table API client holding the base URL and the API key."""

    def __init__(
        self,
        http_config: HttpConfig,
        retry_config: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep=time.sleep,
    ):
        self.http_config = http_config
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=http_config.base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(http_config.timeout),
            follow_redirects=True,
            max_redirects=http_config.max_redirects,
            headers={"User-Agent": http_config.user_agent, **http_config.headers},
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: RefDataConfig, transport: httpx.BaseTransport | None = None) -> HttpClient:
        return cls(
            HttpConfig(
                base_url=config.base_url,
                api_key=config.api_key,
                timeout=config.http.timeout,
                user_agent=config.http.user_agent,
            ),
            RetryConfig(max_retries=config.http.max_retries, backoff_factor=config.http.backoff_factor),
            transport=transport,
        )

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _backoff(self, attempt: int) -> float:
        return self.retry_config.backoff_factor**attempt

    def _should_retry(self, exc: Exception) -> bool:
        return any(isinstance(exc, exc_type) for exc_type in self.retry_config.retry_on_exceptions)

    def _send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        """Send with retries; the returned response has a successful status."""

        for attempt in range(self.retry_config.max_retries + 1):
            last_attempt = attempt >= self.retry_config.max_retries
            try:
                response = self._client.send(request, stream=stream)
            except httpx.HTTPError as exc:
                if self._should_retry(exc) and not last_attempt:
                    delay = self._backoff(attempt)
                    logger.warning(
                        "request failed with {}: {}, retrying in {} seconds (attempt {})",
                        type(exc).__name__,
                        exc,
                        delay,
                        attempt + 1,
                    )
                    self._sleep(delay)
                    continue
                raise TransportError(
                    f"request to {request.url.copy_remove_param('api_key')} failed: {exc}",
                    url=str(request.url.copy_remove_param("api_key")),
                ) from exc

            if response.status_code in self.retry_config.retry_on_status and not last_attempt:
                response.close()
                delay = self._backoff(attempt)
                logger.warning(
                    "request failed with status {}, retrying in {} seconds (attempt {})",
                    response.status_code,
                    delay,
                    attempt + 1,
                )
                self._sleep(delay)
                continue

            if response.is_error:
                status = response.status_code
                response.close()
                url = str(request.url.copy_remove_param("api_key"))
                raise TransportError(f"HTTP error {status} from {url}", status_code=status, url=url)
            return response

        raise AssertionError("unreachable: retry loop always returns or raises")

    def get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET ``path`` relative to the base URL and decode its JSON body."""

        query = dict(params or {})
        query["api_key"] = self.http_config.api_key
        request = self._client.build_request("GET", path.lstrip("/"), params=query)
        response = self._send(request)
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"invalid JSON from {path}: {exc}", url=str(request.url.copy_remove_param("api_key"))
            ) from exc

    @contextmanager
    def stream(self, url: str) -> Iterator[httpx.Response]:
        """Stream an absolute URL, e.g. a bulk download link."""

        request = self._client.build_request("GET", url)
        response = self._send(request, stream=True)
        try:
            yield response
        finally:
            response.close()


__all__ = ["HttpClient", "HttpConfig", "RetryConfig"]
