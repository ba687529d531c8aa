"""Stage timings and outcome counters for the pipelines.

Route and action pipelines open a scope per stage (``route.body``,
``action.chain``...) and count outcomes such as short-circuits. Scopes nest,
and nested scope names are joined with dots. Unless telemetry is enabled and
at least one reporter is configured, every pipeline shares one stateless
no-op context.
"""

from collections import defaultdict, deque
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

log = logging.getLogger(__name__)

# Per-task scope stack, so concurrent invocations never see each other's scopes
_active_scopes: ContextVar[tuple[str, ...]] = ContextVar(
    "safe_route_active_scopes",
    default=(),
)


@runtime_checkable
class TelemetryReporter(Protocol):
    """Receives stage timings and metrics."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Shared context used when nothing is reported."""

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


def _scope_metadata(parents: tuple[str, ...], extra: dict[str, Any]) -> dict[str, Any]:
    return {
        "depth": len(parents),
        "parent_scope": ".".join(parents) or None,
        **extra,
    }


class _ReportingTelemetryContext:
    """Forwards scope timings and metrics to every reporter."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    @contextmanager
    def __call__(self, name: str, **metadata: Any) -> Iterator[Self]:
        if not name or not isinstance(name, str):
            raise ValueError("Telemetry scope name must be a non-empty string")

        parents = _active_scopes.get()
        token = _active_scopes.set((*parents, name))
        started = time.perf_counter()
        try:
            yield self
        finally:
            elapsed = time.perf_counter() - started
            _active_scopes.reset(token)
            self._dispatch(
                "record_timing",
                ".".join((*parents, name)),
                elapsed,
                _scope_metadata(parents, metadata),
            )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record ``value`` under ``name`` inside the active scope."""
        parents = _active_scopes.get()
        self._dispatch(
            "record_metric",
            ".".join((*parents, name)),
            value,
            _scope_metadata(parents, metadata),
        )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        self.metric(name, increment, metric_type="counter", **metadata)

    def _dispatch(
        self, method: str, scope: str, value: Any, metadata: dict[str, Any]
    ) -> None:
        # A broken reporter must never change a pipeline's outcome.
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter %s failed in %s(%r): %s",
                    type(reporter).__name__,
                    method,
                    scope,
                    e,
                    exc_info=True,
                )


_NO_OP = _NoOpTelemetryContext()

type TelemetryContextProtocol = _ReportingTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(  # noqa: N802
    *reporters: TelemetryReporter, enabled: bool = True
) -> TelemetryContextProtocol:
    """Return a reporting context, or the shared no-op one.

    Args:
        *reporters: Destinations for timings and metrics.
        enabled: Builders pass the ``telemetry_enabled`` setting here.

    Returns:
        A context usable as ``with tele("route.body"): ...``.
    """
    if enabled and reporters:
        return _ReportingTelemetryContext(*reporters)
    return _NO_OP


class InMemoryReporter:
    """Keeps the most recent timings and metrics per scope.

    Meant for development and tests. ``get_report()`` renders a summary.
    """

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: defaultdict[str, deque[tuple[float, dict[str, Any]]]] = defaultdict(
            self._new_bucket
        )
        self.metrics: defaultdict[str, deque[tuple[Any, dict[str, Any]]]] = defaultdict(
            self._new_bucket
        )

    def _new_bucket(self) -> deque[Any]:
        return deque(maxlen=self.max_entries)

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings[scope].append((duration, metadata))

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics[scope].append((value, metadata))

    def clear(self) -> None:
        self.timings.clear()
        self.metrics.clear()

    def get_report(self) -> str:
        lines = ["Stage timings:"]
        for scope, entries in sorted(self.timings.items()):
            durations = [duration for duration, _ in entries]
            lines.append(
                f"  {scope:<28} calls={len(durations):<5} "
                f"avg={sum(durations) / len(durations) * 1000:.3f}ms "
                f"max={max(durations) * 1000:.3f}ms"
            )
        if self.metrics:
            lines.append("Metrics:")
            for scope, entries in sorted(self.metrics.items()):
                total = sum(v for v, _ in entries if isinstance(v, int | float))
                lines.append(f"  {scope:<28} events={len(entries):<5} total={total:g}")
        return "\n".join(lines)
