"""
In-memory metrics for workflow execution.

- workflow_runs_total: Counter of workflow executions by outcome
- workflow_duration_seconds: Histogram of whole-workflow execution times
- node_execution_total: Counter of node attempts by function and status
- node_duration_seconds: Histogram of remote call times per function
- mapping_warnings_total: Counter of pre-execution mapping warnings by kind
"""
from collections import defaultdict
from typing import Any
import logging

logger = logging.getLogger("agenticflows.metrics")

# (metric name, sorted label pairs)
_Key = tuple[str, tuple[tuple[str, str], ...]]


def _key(name: str, labels: dict[str, str] | None) -> _Key:
    return name, tuple(sorted((labels or {}).items()))


def _render(key: _Key) -> str:
    """``name`` or ``name{k1=v1,k2=v2}``."""
    name, labels = key
    if not labels:
        return name
    return f"{name}{{{','.join(f'{k}={v}' for k, v in labels)}}}"


def _stats(values: list[float]) -> dict[str, Any]:
    if not values:
        return {"count": 0, "sum": 0, "min": 0, "max": 0, "avg": 0, "p95": 0}
    ordered = sorted(values)
    n = len(ordered)
    total = sum(ordered)
    return {
        "count": n,
        "sum": total,
        "min": ordered[0],
        "max": ordered[-1],
        "avg": total / n,
        "p95": ordered[max(0, int(n * 0.95) - 1)],
    }


class MetricsCollector:
    """Counters and histograms keyed by metric name plus label set."""

    def __init__(self):
        self._counters: dict[_Key, int] = defaultdict(int)
        self._histograms: dict[_Key, list[float]] = defaultdict(list)

    def increment_counter(self, name: str, value: int = 1, labels: dict[str, str] | None = None):
        self._counters[_key(name, labels)] += value

    def observe_histogram(self, name: str, value: float, labels: dict[str, str] | None = None):
        self._histograms[_key(name, labels)].append(value)

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        return self._counters.get(_key(name, labels), 0)

    def get_histogram_stats(self, name: str, labels: dict[str, str] | None = None) -> dict[str, Any]:
        """count, sum, min, max, avg and p95 of one histogram."""
        return _stats(self._histograms.get(_key(name, labels), []))

    def counters_by_label(self, name: str, label: str) -> dict[str, int]:
        """Sum a counter over every label set, grouped by the value of *label*."""
        grouped: dict[str, int] = defaultdict(int)
        for (metric, labels), value in self._counters.items():
            if metric != name:
                continue
            label_value = dict(labels).get(label)
            if label_value is not None:
                grouped[label_value] += value
        return dict(grouped)

    def get_all_metrics(self) -> dict[str, Any]:
        return {
            "counters": {_render(k): v for k, v in self._counters.items()},
            "histograms": {_render(k): _stats(v) for k, v in self._histograms.items()},
        }

    def reset(self):
        self._counters.clear()
        self._histograms.clear()


# Global metrics collector instance
metrics = MetricsCollector()


def record_workflow_completed(duration_seconds: float, status: str):
    """
    Record the end of a workflow execution.

    Args:
        duration_seconds: Wall time of the whole execute() call
        status: completed, partial (some nodes failed), cancelled, invalid
    """
    metrics.increment_counter("workflow_runs_total", labels={"status": status})
    metrics.observe_histogram("workflow_duration_seconds", duration_seconds, labels={"status": status})


def record_node_execution(function_id: str, status: str, duration_seconds: float | None = None):
    """
    Record a single node attempt.

    Args:
        function_id: Function identifier bound to the node
        status: succeeded or failed
        duration_seconds: Remote call time, when the call was made
    """
    metrics.increment_counter("node_execution_total", labels={"function_id": function_id, "status": status})
    if duration_seconds is not None:
        metrics.observe_histogram("node_duration_seconds", duration_seconds, labels={"function_id": function_id})


def record_mapping_warning(kind: str):
    metrics.increment_counter("mapping_warnings_total", labels={"kind": kind})


def get_metrics_summary() -> dict:
    """Raw counters and histograms plus per-outcome workflow totals and per-function failure counts."""
    summary = metrics.get_all_metrics()
    summary["workflows"] = metrics.counters_by_label("workflow_runs_total", "status")
    summary["node_failures"] = {
        function_id: metrics.get_counter("node_execution_total", {"function_id": function_id, "status": "failed"})
        for function_id in metrics.counters_by_label("node_execution_total", "function_id")
    }
    return summary
