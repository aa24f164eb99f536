"""HTTP client with retry/backoff for the catalog feed."""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


@dataclass
class FetchMetrics:
    network_requests: int = 0
    cache_hits: int = 0
    retries: int = 0
    records_loaded: int = 0

    def summary(self) -> str:
        return (
            f"network_requests={self.network_requests} cache_hits={self.cache_hits} "
            f"retries={self.retries} records_loaded={self.records_loaded}"
        )


class HttpClient:
    def __init__(
        self,
        api_token: Optional[str] = None,
        timeout: int = 20,
        retry_max: int = 5,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        metrics: Optional[FetchMetrics] = None,
    ) -> None:
        self.api_token = api_token
        self.timeout = timeout
        self.retry_max = retry_max
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.metrics = metrics
        self.session = requests.Session()

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        if extra_headers:
            headers.update(extra_headers)

        for attempt in range(1, self.retry_max + 1):
            if self.metrics is not None:
                self.metrics.network_requests += 1
            try:
                resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            except requests.RequestException as exc:
                logger.warning("Request to %s failed: %s (attempt %s)", url, exc, attempt)
                if attempt >= self.retry_max:
                    raise
                self._count_retry()
                time.sleep(self._retry_delay(attempt))
                continue

            status = resp.status_code
            if status == 200:
                try:
                    return resp.json()
                except ValueError:
                    logger.error("Non-JSON response from %s", url)
                    raise

            if status in RETRYABLE_STATUSES:
                logger.warning("HTTP %s from %s (attempt %s)", status, url, attempt)
                if attempt >= self.retry_max:
                    resp.raise_for_status()
                self._count_retry()
                time.sleep(self._retry_delay(attempt, resp.headers.get("Retry-After")))
                continue

            logger.error("HTTP %s from %s", status, url)
            resp.raise_for_status()

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def _count_retry(self) -> None:
        if self.metrics is not None:
            self.metrics.retries += 1

    def _retry_delay(self, attempt: int, retry_after: Optional[str] = None) -> float:
        """Seconds to wait before the next attempt; a numeric Retry-After wins, capped at backoff_max."""
        if retry_after:
            try:
                return max(0.0, min(float(retry_after), self.backoff_max))
            except ValueError:
                pass
        delay = min(self.backoff_base * 2 ** (attempt - 1), self.backoff_max)
        return delay + random.uniform(0, self.backoff_base)
