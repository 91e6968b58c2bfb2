import asyncio
import logging
import sys

import pytest

from hurley.client import HttpResponse
from hurley.request import HttpRequest


class FakeExecutor:
    """Stands in for HttpClient; tracks how many calls overlap."""

    def __init__(self, delay_s: float = 0.0, status: int = 200, fail_urls: set[str] | None = None):
        self.delay_s = delay_s
        self.status = status
        self.fail_urls = fail_urls or set()
        self.requests: list[HttpRequest] = []
        self.active = 0
        self.peak_active = 0

    async def execute(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            await asyncio.sleep(self.delay_s)
            status = 500 if request.url in self.fail_urls else self.status
            return HttpResponse(status=status, reason="", body="", elapsed_s=self.delay_s)
        finally:
            self.active -= 1


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI reconfigures the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers, level, hook = root.handlers[:], root.level, sys.excepthook
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    sys.excepthook = hook
