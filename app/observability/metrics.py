"""Onboarding counters and timings, logged as structured events and optionally sent to StatsD."""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from app.config import settings

try:  # pragma: no cover - optional dependency
    from statsd import StatsClient
except Exception:  # pragma: no cover - optional dependency guard
    StatsClient = None  # type: ignore[assignment]

logger = logging.getLogger("app.metrics")


class MetricsReporter:
    """Counter/timer sink for transitions, persistence and scoring latency."""

    def __init__(
        self,
        *,
        namespace: str | None = None,
        backend: str | None = None,
        sample_rate: float | None = None,
        disabled: bool | None = None,
    ) -> None:
        self._namespace = (namespace or settings.metrics_namespace or "onboarding").strip(".")
        self._backend = (backend or settings.metrics_backend or "stdout").lower()
        rate = settings.metrics_sample_rate if sample_rate is None else sample_rate
        self._sample_rate = max(0.0, min(rate, 1.0))
        self._disabled = settings.metrics_disable if disabled is None else disabled
        self._statsd = self._connect_statsd() if self._backend == "statsd" and not self._disabled else None

    def increment(
        self, metric: str, value: float = 1.0, *, tags: dict[str, Any] | None = None
    ) -> None:
        self._emit("counter", metric, value, tags)

    def timing(self, metric: str, value_ms: float, *, tags: dict[str, Any] | None = None) -> None:
        self._emit("timing", metric, value_ms, tags)

    @contextmanager
    def timed(self, metric: str, *, tags: dict[str, Any] | None = None) -> Iterator[None]:
        """Record the wall time of the wrapped block in milliseconds."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.timing(metric, (time.perf_counter() - start) * 1000, tags=tags)

    def qualify(self, metric: str) -> str:
        trimmed = (metric or "").strip(". ")
        if not trimmed:
            return self._namespace
        if trimmed == self._namespace or trimmed.startswith(f"{self._namespace}."):
            return trimmed
        return f"{self._namespace}.{trimmed}"

    def _emit(self, kind: str, metric: str, value: float, tags: dict[str, Any] | None) -> None:
        if self._disabled or value is None:
            return
        if self._sample_rate < 1.0 and secrets.randbelow(1_000_000) / 1_000_000 >= self._sample_rate:
            return
        name = self.qualify(metric)
        payload: dict[str, Any] = {
            "metric": name,
            "type": kind,
            "value": round(float(value), 4),
            "tags": dict(tags or {}),
        }
        if self._sample_rate < 1.0:
            payload["sample_rate"] = round(self._sample_rate, 4)
        logger.info("onboarding.metric", extra={"metrics": payload})
        if self._statsd is not None:
            self._send_statsd(kind, name, value)

    def _send_statsd(self, kind: str, name: str, value: float) -> None:
        try:
            if kind == "timing":
                self._statsd.timing(name, value, rate=self._sample_rate)
            else:
                self._statsd.incr(name, value, rate=self._sample_rate)
        except Exception as exc:  # pragma: no cover - network sink
            logger.warning(
                "metrics.backend_error",
                extra={"metric": name, "backend": self._backend, "error": type(exc).__name__},
            )

    @staticmethod
    def _connect_statsd() -> Any:
        if StatsClient is None:
            logger.warning("statsd backend requested but statsd package is not installed.")
            return None
        return StatsClient(
            host=settings.metrics_statsd_host,
            port=settings.metrics_statsd_port,
            prefix="",
        )


metrics = MetricsReporter()
