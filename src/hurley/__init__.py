__all__ = [
    "Dataset",
    "DatasetEntry",
    "HttpClient",
    "HttpRequest",
    "MetricsCollector",
    "PerfRunner",
    "Snapshot",
    "plan",
]


from .client import HttpClient
from .dataset import Dataset, DatasetEntry
from .metrics import MetricsCollector
from .models import Snapshot
from .planner import plan
from .request import HttpRequest
from .runner import PerfRunner
