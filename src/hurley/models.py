from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any
from collections.abc import Callable


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class ExecutionResult:
    outcome: Outcome
    elapsed_s: float
    status: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


@dataclass(frozen=True)
class Snapshot:
    total_requests: int
    successful_requests: int
    failed_requests: int
    total_duration_ms: float
    latency_min_ms: float
    latency_max_ms: float
    latency_avg_ms: float
    latency_p50_ms: float
    latency_p95_ms: float
    latency_p99_ms: float
    requests_per_second: float
    error_rate_percent: float
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Progress callback: (completed, total)
ProgressCallback = Callable[[int, int], None]

# Metrics callback: callable accepting snapshot dict
MetricsCallback = Callable[[dict[str, Any]], None]
