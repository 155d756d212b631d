# pipeline.py
from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Iterator, List, Optional

from .errors import ExporterError
from .job import NameSource, assemble
from .model import Job, JobPath

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 20

# Three stages, connected only through queues:
#
#   feeder thread:  paths (walker)  -> inbox   (bounded, backpressure)
#   N workers:      inbox           -> outbox  (unbounded)
#   caller:         outbox          -> Job iterator
#
# Every worker posts _WORKER_DONE on exit; the caller stops after it has
# seen one per worker, so the job stream ends exactly when the pool has
# drained the input.

_END = object()
_WORKER_DONE = object()


class ParsePipeline:
    """Fixed-size worker pool turning job paths into assembled Jobs."""

    def __init__(
        self,
        workers: int = DEFAULT_WORKERS,
        *,
        name_source: NameSource = NameSource.PATH,
        assemble_fn: Optional[Callable[[JobPath], Job]] = None,
    ):
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.workers = workers
        self.name_source = name_source
        self._assemble = assemble_fn or (lambda p: assemble(p, name_source=self.name_source))

    # ------------------------------------------------------------------
    # stages
    # ------------------------------------------------------------------

    def _feed(
        self,
        paths: Iterable[JobPath],
        inbox: queue.Queue,
        stop: threading.Event,
        failures: List[BaseException],
    ) -> None:
        try:
            for path in paths:
                if stop.is_set():
                    break
                inbox.put(path)
        except Exception as e:
            failures.append(e)
        finally:
            for _ in range(self.workers):
                inbox.put(_END)

    def _work(self, inbox: queue.Queue, outbox: queue.Queue, stop: threading.Event) -> None:
        try:
            while True:
                path = inbox.get()
                if path is _END:
                    return
                if stop.is_set():
                    continue  # drain without working so the feeder never blocks
                try:
                    job = self._assemble(path)
                except ExporterError as e:
                    logger.debug("Failed to parse %s: %s", path, e)
                    continue
                except Exception:
                    logger.exception("Unexpected error parsing %s", path)
                    continue
                outbox.put(job)
        finally:
            outbox.put(_WORKER_DONE)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def run(self, paths: Iterable[JobPath]) -> Iterator[Job]:
        """
        Yield a Job for every path that assembles successfully.

        Output order is unspecified. Per-job failures are logged and the
        job is dropped. If iterating `paths` itself raises, the exception
        is re-raised here once the workers are done.
        """
        inbox: queue.Queue = queue.Queue(maxsize=2 * self.workers)
        outbox: queue.Queue = queue.Queue()
        stop = threading.Event()
        failures: List[BaseException] = []

        feeder = threading.Thread(
            target=self._feed,
            args=(paths, inbox, stop, failures),
            name="jenkins-exporter-walker",
            daemon=True,
        )

        pool = ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="jenkins-exporter-parser",
        )
        try:
            feeder.start()
            for _ in range(self.workers):
                pool.submit(self._work, inbox, outbox, stop)

            remaining = self.workers
            while remaining:
                item = outbox.get()
                if item is _WORKER_DONE:
                    remaining -= 1
                    continue
                yield item
        finally:
            stop.set()
            pool.shutdown(wait=True)
            feeder.join()

        if failures:
            raise failures[0]


def parse_jobs(
    paths: Iterable[JobPath],
    workers: int = DEFAULT_WORKERS,
    name_source: NameSource = NameSource.PATH,
) -> Iterator[Job]:
    """Shortcut for ParsePipeline(workers, name_source=...).run(paths)."""
    return ParsePipeline(workers, name_source=name_source).run(paths)
