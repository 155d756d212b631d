# collector.py
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from .errors import TraversalError
from .job import NameSource
from .model import Build, Job
from .pipeline import DEFAULT_WORKERS, ParsePipeline
from .settings import ExporterSettings
from .walker import TreeWalker

logger = logging.getLogger(__name__)

NAMESPACE = "jenkins"
BUILD_LABELS = ["folder", "jenkins_job", "result"]


@dataclass
class ScanResult:
    """Everything one pass over the Jenkins tree produced."""
    up: bool
    jobs: List[Job] = field(default_factory=list)
    traversal_errors: int = 0
    duration: float = 0.0
    skipped: List[TraversalError] = field(default_factory=list)


def scan(
    root: str,
    ignore: Optional[List[str]] = None,
    workers: int = DEFAULT_WORKERS,
    name_source: NameSource = NameSource.PATH,
) -> ScanResult:
    """Walk `root` and parse every job found. A fresh, stateless pass."""
    start = time.monotonic()
    walker = TreeWalker(root, ignore or [])
    pipeline = ParsePipeline(workers, name_source=name_source)
    jobs = list(pipeline.run(walker))
    return ScanResult(
        up=bool(walker.up),
        jobs=jobs,
        traversal_errors=len(walker.errors),
        duration=time.monotonic() - start,
        skipped=list(walker.errors),
    )


class JenkinsCollector(Collector):
    """
    Prometheus collector that rescans the Jenkins tree on every scrape.

    Scrapes are serialized; the only state kept between them is the
    collection failure counter.
    """

    def __init__(self, settings: ExporterSettings):
        self.settings = settings
        self._lock = threading.Lock()
        self._failures = 0

    # ------------------------------------------------------------------
    # metric families
    # ------------------------------------------------------------------

    def _build_families(self) -> Dict[str, GaugeMetricFamily]:
        return {
            "number": GaugeMetricFamily(
                f"{NAMESPACE}_last_build_number",
                "Build number of the last build",
                labels=BUILD_LABELS,
            ),
            "timestamp": GaugeMetricFamily(
                f"{NAMESPACE}_last_build_timestamp_seconds",
                "Timestamp of the last build",
                labels=BUILD_LABELS,
            ),
            "duration": GaugeMetricFamily(
                f"{NAMESPACE}_last_build_duration_seconds",
                "Duration of the last build",
                labels=BUILD_LABELS,
            ),
        }

    def _custom_families(self) -> Dict[str, GaugeMetricFamily]:
        return {
            env_var: GaugeMetricFamily(
                f"{NAMESPACE}_custom_last_{metric_name}",
                f"Custom metric generated from environment variable {env_var}",
                labels=BUILD_LABELS,
            )
            for env_var, metric_name in self.settings.env_vars.items()
        }

    def _up(self, value: float) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            f"{NAMESPACE}_up",
            "Whether the Jenkins path is a valid Jenkins tree",
            value=value,
        )

    def _collect_duration(self, value: float) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            f"{NAMESPACE}_collect_duration_seconds",
            "The time it took to collect the metrics in seconds",
            value=value,
        )

    def _collect_failures(self) -> CounterMetricFamily:
        return CounterMetricFamily(
            f"{NAMESPACE}_collect_failures",
            "The number of collection failures since the exporter was started",
            value=self._failures,
        )

    def describe(self) -> Iterator[Metric]:
        # fixed families only, so registering doesn't trigger a scan
        yield self._up(0)
        yield self._collect_duration(0)
        yield self._collect_failures()
        yield from self._build_families().values()
        yield from self._custom_families().values()

    # ------------------------------------------------------------------
    # collection
    # ------------------------------------------------------------------

    def _add_build(
        self,
        families: Dict[str, GaugeMetricFamily],
        custom: Dict[str, GaugeMetricFamily],
        job: Job,
        result: str,
        build: Build,
    ) -> None:
        labels = [job.folder, job.name, result]
        families["number"].add_metric(labels, build.number)
        families["timestamp"].add_metric(labels, build.timestamp_seconds)
        families["duration"].add_metric(labels, build.duration_seconds)

        for env_var, family in custom.items():
            raw = build.env_vars.get(env_var)
            if raw is None:
                continue
            try:
                value = float(raw)
            except ValueError:
                logger.debug("Couldn't parse environment variable %s: %r", env_var, raw)
                continue
            family.add_metric(labels, value)

    def collect(self) -> Iterator[Metric]:
        with self._lock:
            logger.info("Started collection")
            result = scan(
                self.settings.jenkins_path,
                self.settings.ignore,
                self.settings.workers,
                self.settings.name_source,
            )

            if not result.up:
                self._failures += 1

            families = self._build_families()
            custom = self._custom_families()
            for job in result.jobs:
                for category, build in job.builds():
                    self._add_build(families, custom, job, category.label, build)
                logger.debug("Parsed job %s in folder %s", job.name, job.folder)

            logger.info(
                "Collection completed in %f seconds (%d jobs, %d traversal errors)",
                result.duration, len(result.jobs), result.traversal_errors,
            )

            metrics: List[Metric] = [
                self._up(1 if result.up else 0),
                self._collect_duration(result.duration),
                self._collect_failures(),
                *families.values(),
                *custom.values(),
            ]

        yield from metrics
