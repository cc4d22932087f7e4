"""In-process metrics registry shared by the engine and the /metrics route."""
from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, MutableMapping, Tuple

from .base import CounterMetric, DistributionMetric, Metric, track_duration


class MetricsRegistry:
    """Registry that holds metric instances and offers helper utilities."""

    def __init__(self) -> None:
        self._metrics: MutableMapping[str, Metric] = {}
        self._lock = Lock()

    def _get_or_create(self, name: str, factory: Callable[[], Metric]) -> Metric:
        with self._lock:
            if name not in self._metrics:
                self._metrics[name] = factory()
            return self._metrics[name]

    def counter(
        self,
        name: str,
        *,
        description: str = "",
        label_names: Iterable[str] | None = None,
    ) -> CounterMetric:
        metric = self._get_or_create(
            name,
            lambda: CounterMetric(name, description=description, label_names=label_names),
        )
        if not isinstance(metric, CounterMetric):
            raise TypeError(f"Metric '{name}' already exists with a different type")
        return metric

    def distribution(
        self,
        name: str,
        *,
        description: str = "",
        label_names: Iterable[str] | None = None,
    ) -> DistributionMetric:
        metric = self._get_or_create(
            name,
            lambda: DistributionMetric(name, description=description, label_names=label_names),
        )
        if not isinstance(metric, DistributionMetric):
            raise TypeError(f"Metric '{name}' already exists with a different type")
        return metric

    def snapshot(self) -> Dict[str, Mapping[Tuple[str, ...], Mapping[str, float]]]:
        with self._lock:
            return {name: metric.snapshot() for name, metric in self._metrics.items()}

    def export(self) -> Dict[str, Dict[str, Any]]:
        """Return a JSON friendly view with label tuples expanded into mappings."""

        with self._lock:
            metrics = list(self._metrics.values())
        exported: Dict[str, Dict[str, Any]] = {}
        for metric in metrics:
            samples: List[Dict[str, Any]] = []
            for label_values, values in metric.snapshot().items():
                samples.append({"labels": dict(zip(metric.label_names, label_values)), **values})
            exported[metric.name] = {
                "type": metric.metric_type,
                "description": metric.description,
                "samples": samples,
            }
        return exported

    @contextmanager
    def time_distribution(
        self,
        name: str,
        *,
        labels: Mapping[str, str] | None = None,
    ) -> Iterator[None]:
        metric = self.distribution(name)
        with track_duration(metric, labels=labels):
            yield
