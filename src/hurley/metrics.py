import logging
import math
import threading

from hdrh.histogram import HdrHistogram

from .models import MetricsCallback, Snapshot
from .utils import now

logger = logging.getLogger(__name__)

# Latencies are tracked in microseconds, 1us .. 60s, 3 significant figures.
LOWEST_TRACKABLE_US = 1
HIGHEST_TRACKABLE_US = 60_000_000
SIGNIFICANT_FIGURES = 3


def _us_to_ms(micros: float) -> float:
    return micros / 1000.0


def compute_snapshot(
    histogram: HdrHistogram,
    success_count: int,
    failure_count: int,
    started_at: float | None,
    finished_at: float | None,
    cancelled: bool = False,
    metrics_callback: MetricsCallback | None = None,
) -> Snapshot:
    """Derive reportable statistics. Reads ``histogram`` without mutating it."""
    total = success_count + failure_count
    logger.debug(
        f"Computing snapshot: total={total}, success={success_count}, failures={failure_count}"
    )

    if started_at is not None and finished_at is not None:
        duration_s = max(0.0, finished_at - started_at)
    else:
        duration_s = 0.0

    requests_per_second = total / duration_s if duration_s > 0 else 0.0
    error_rate = 100.0 * failure_count / total if total > 0 else 0.0

    if histogram.get_total_count() > 0:
        latency = {
            "latency_min_ms": _us_to_ms(histogram.get_min_value()),
            "latency_max_ms": _us_to_ms(histogram.get_max_value()),
            "latency_avg_ms": _us_to_ms(histogram.get_mean_value()),
            "latency_p50_ms": _us_to_ms(histogram.get_value_at_percentile(50.0)),
            "latency_p95_ms": _us_to_ms(histogram.get_value_at_percentile(95.0)),
            "latency_p99_ms": _us_to_ms(histogram.get_value_at_percentile(99.0)),
        }
    else:
        latency = dict.fromkeys(
            (
                "latency_min_ms",
                "latency_max_ms",
                "latency_avg_ms",
                "latency_p50_ms",
                "latency_p95_ms",
                "latency_p99_ms",
            ),
            0.0,
        )

    snapshot = Snapshot(
        total_requests=total,
        successful_requests=success_count,
        failed_requests=failure_count,
        total_duration_ms=duration_s * 1000.0,
        requests_per_second=requests_per_second,
        error_rate_percent=min(100.0, max(0.0, error_rate)),
        cancelled=cancelled,
        **latency,
    )

    if metrics_callback:
        metrics_callback(snapshot.to_dict())

    logger.info(
        f"Snapshot computed: success={success_count}, failures={failure_count}, "
        f"p50={snapshot.latency_p50_ms:.2f}ms, p99={snapshot.latency_p99_ms:.2f}ms, "
        f"error_rate={snapshot.error_rate_percent:.1f}%"
    )
    return snapshot


class MetricsCollector:
    """
    Accumulates latencies and outcome counters for one run.

    Every call is serialized on one lock, so units running on the event
    loop or in worker threads may record concurrently. After ``finish()``
    the collector is read-only.
    """

    def __init__(
        self,
        highest_trackable_us: int = HIGHEST_TRACKABLE_US,
        significant_figures: int = SIGNIFICANT_FIGURES,
    ) -> None:
        self._lock = threading.Lock()
        self._histogram = HdrHistogram(LOWEST_TRACKABLE_US, highest_trackable_us, significant_figures)
        self.max_trackable_us = highest_trackable_us
        self.success_count = 0
        self.failure_count = 0
        self.started_at: float | None = None
        self.finished_at: float | None = None
        self.clamped_count = 0

    @property
    def recorded(self) -> int:
        with self._lock:
            return self.success_count + self.failure_count

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    def start(self) -> None:
        with self._lock:
            self.started_at = now()

    def finish(self) -> None:
        with self._lock:
            self.finished_at = now()

    def _to_micros(self, duration_s: float) -> int:
        micros = duration_s * 1_000_000
        # NaN and +inf count as the worst case; outliers land in the top bucket.
        if math.isnan(micros) or micros > self.max_trackable_us:
            self.clamped_count += 1
            logger.debug(f"Clamping latency {duration_s!r}s to {self.max_trackable_us}us")
            return self.max_trackable_us
        if micros <= 0:
            return 0
        return int(micros)

    def _record(self, duration_s: float, success: bool) -> None:
        with self._lock:
            if self.finished_at is not None:
                raise RuntimeError("MetricsCollector is read-only after finish()")
            self._histogram.record_value(self._to_micros(duration_s))
            if success:
                self.success_count += 1
            else:
                self.failure_count += 1

    def record_success(self, duration_s: float) -> None:
        self._record(duration_s, success=True)

    def record_failure(self, duration_s: float) -> None:
        self._record(duration_s, success=False)

    def compute(
        self, cancelled: bool = False, metrics_callback: MetricsCallback | None = None
    ) -> Snapshot:
        with self._lock:
            snapshot = compute_snapshot(
                self._histogram,
                self.success_count,
                self.failure_count,
                self.started_at,
                self.finished_at,
                cancelled=cancelled,
            )
        if metrics_callback:
            metrics_callback(snapshot.to_dict())
        return snapshot
