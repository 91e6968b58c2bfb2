import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Sequence
from typing import Any, Protocol, TypeVar

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .client import HttpClient, HttpResponse
from .dataset import Dataset, DatasetEntry
from .errors import ConfigurationError, RequestError
from .metrics import MetricsCollector
from .models import ExecutionResult, MetricsCallback, Outcome, ProgressCallback, Snapshot
from .planner import plan
from .request import HttpRequest
from .throttling import ConcurrencyLimiter
from .utils import now, resolve_url

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestExecutor(Protocol):
    async def execute(self, request: HttpRequest) -> HttpResponse: ...


class PerfRunner:
    """
    Dispatches a planned workload under a fixed concurrency bound.

    Each planned entry takes one permit from the limiter before its unit is
    launched, so at most ``concurrency`` requests are in flight. The run
    ends with a barrier over every launched unit, after which the collector
    is finished and the snapshot computed.
    """

    def __init__(
        self,
        base_url: str,
        base_request: HttpRequest,
        concurrency: int,
        total_requests: int,
        verbose: bool = False,
        client: RequestExecutor | None = None,
        use_progress_bar: bool = True,
        progress_callback: ProgressCallback | None = None,
        metrics_callback: MetricsCallback | None = None,
    ) -> None:
        if concurrency < 1:
            raise ConfigurationError(f"concurrency must be >= 1, got {concurrency}")
        self.base_url = base_url
        self.base_request = base_request
        self.concurrency = concurrency
        self.total_requests = total_requests
        self.verbose = verbose
        self.client = client
        self.use_progress_bar = use_progress_bar
        self.progress_callback = progress_callback
        self.metrics_callback = metrics_callback

        # Runtime state of the most recent run
        self.limiter: ConcurrencyLimiter | None = None
        self.collector: MetricsCollector | None = None
        self.completed = 0
        self.planned_total = 0
        self.pending_units: set[asyncio.Task] = set()

        logger.info(
            f"Initialized PerfRunner for {base_url}: "
            f"concurrency={concurrency}, total_requests={total_requests}"
        )

    # ────────────────────────────────
    # Request Construction
    # ────────────────────────────────

    def build_request(self, entry: DatasetEntry) -> HttpRequest:
        """Layer entry overrides on the base template. Raises InvalidMethodError."""
        base = self.base_request
        body = entry.body_string()
        return (
            HttpRequest(resolve_url(self.base_url, entry.path))
            .with_method(entry.method)
            .with_timeout(base.timeout_s)
            .with_follow_redirects(base.follow_redirects)
            .with_headers(base.headers)
            .with_headers(entry.headers)
            .with_body(body if body is not None else base.body)
        )

    # ────────────────────────────────
    # Cancellation Helpers
    # ────────────────────────────────

    @staticmethod
    async def _until_cancelled(
        awaitable: Awaitable[T], cancel_event: asyncio.Event | None
    ) -> tuple[bool, T | None]:
        """Await ``awaitable`` unless ``cancel_event`` fires first."""
        if cancel_event is None:
            return True, await awaitable

        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            stop.cancel()

        if work.done():
            return True, work.result()

        work.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await work
        return False, None

    async def _acquire(self, limiter: ConcurrencyLimiter, cancel_event: asyncio.Event | None) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return False
        acquired, _ = await self._until_cancelled(limiter.acquire(), cancel_event)
        if acquired and cancel_event is not None and cancel_event.is_set():
            limiter.release()
            return False
        return acquired

    # ────────────────────────────────
    # Execution Unit
    # ────────────────────────────────

    async def _execute_unit(
        self,
        client: RequestExecutor,
        collector: MetricsCollector,
        entry: DatasetEntry,
        index: int,
        cancel_event: asyncio.Event | None,
        progress: Progress | None,
        task_id: Any,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.debug(f"[#{index}] Run cancelled before start, skipping")
            return

        start = now()
        status: int | None = None
        error: str | None = None
        try:
            request = self.build_request(entry)
            if self.verbose:
                logger.info(f"[#{index}] >>> {request.method} {request.url} headers={request.headers}")
            finished, response = await self._until_cancelled(client.execute(request), cancel_event)
            if not finished:
                logger.debug(f"[#{index}] Abandoned in-flight request to {request.url}")
                return
            status = response.status
            ok = response.is_success()
            if not ok:
                error = f"status {status}"
        except (RequestError, ConfigurationError) as e:
            ok = False
            error = str(e)
        except Exception as e:
            logger.exception(f"[#{index}] Unexpected error while executing request")
            ok = False
            error = f"{type(e).__name__}: {e}"

        result = ExecutionResult(
            outcome=Outcome.SUCCESS if ok else Outcome.FAILURE,
            elapsed_s=now() - start,
            status=status,
            error=error,
        )
        if result.ok:
            collector.record_success(result.elapsed_s)
        else:
            collector.record_failure(result.elapsed_s)
            log = logger.info if self.verbose else logger.debug
            log(f"[#{index}] Failure after {result.elapsed_s * 1000:.2f}ms: {result.error}")

        self.completed += 1
        if progress is not None and task_id is not None:
            progress.advance(task_id)
        if self.progress_callback:
            self.progress_callback(self.completed, self.planned_total)

    # ────────────────────────────────
    # Main Runner
    # ────────────────────────────────

    async def run(self, dataset: Dataset, cancel_event: asyncio.Event | None = None) -> Snapshot:
        planned = plan(dataset.entries, self.total_requests)
        return await self.run_plan(planned, cancel_event)

    async def run_plan(
        self, planned: Sequence[DatasetEntry], cancel_event: asyncio.Event | None = None
    ) -> Snapshot:
        logger.info(f"Starting {len(planned)} requests with {self.concurrency} permits")

        limiter = ConcurrencyLimiter(self.concurrency, name="perf")
        collector = MetricsCollector()
        self.limiter = limiter
        self.collector = collector
        self.completed = 0
        self.planned_total = len(planned)

        progress = None
        task_id = None
        if self.use_progress_bar:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=Console(stderr=True),
            )
            progress.start()
            task_id = progress.add_task("[cyan]Requesting...", total=len(planned))

        client_ctx = contextlib.nullcontext(self.client) if self.client is not None else HttpClient()
        units: set[asyncio.Task] = set()
        self.pending_units = units

        def unit_done(task: asyncio.Task) -> None:
            # The unit owns its permit; it goes back exactly once, however the unit ends.
            limiter.release()
            units.discard(task)
            if not task.cancelled() and task.exception() is not None:
                logger.error(f"Execution unit aborted: {task.exception()!r}")

        try:
            async with client_ctx as client:
                collector.start()
                try:
                    for index, entry in enumerate(planned):
                        if not await self._acquire(limiter, cancel_event):
                            logger.info(f"Cancellation requested. Dispatched {index}/{len(planned)} requests")
                            break
                        unit = asyncio.create_task(
                            self._execute_unit(
                                client, collector, entry, index, cancel_event, progress, task_id
                            )
                        )
                        units.add(unit)
                        unit.add_done_callback(unit_done)
                finally:
                    # Barrier: only unfinished units are still tracked
                    if units:
                        await asyncio.gather(*units, return_exceptions=True)
                collector.finish()
        finally:
            if progress:
                progress.stop()

        cancelled = cancel_event is not None and cancel_event.is_set()
        snapshot = collector.compute(cancelled=cancelled, metrics_callback=self.metrics_callback)

        logger.info(
            f"Run completed: {snapshot.successful_requests} succeeded, "
            f"{snapshot.failed_requests} failed, peak in-flight {limiter.peak_in_flight}"
        )
        return snapshot
