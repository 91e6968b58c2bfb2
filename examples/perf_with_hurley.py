"""
Quick sanity test: a small load test against a public endpoint.
Run: uv run examples/perf_with_hurley.py
"""
import asyncio
import os

from hurley import Dataset, HttpRequest, PerfRunner
from hurley.report import print_report

BASE_URL = "https://httpbin.org"


async def main():
    dataset = Dataset.from_file(os.path.join(os.path.dirname(__file__), "dataset.json"))
    base = HttpRequest(BASE_URL).with_timeout(float(os.getenv("HTTP_REQUEST_TIMEOUT_S", "10")))

    runner = PerfRunner(
        base_url=BASE_URL,
        base_request=base,
        concurrency=6,
        total_requests=20,
    )
    snapshot = await runner.run(dataset)
    print_report(snapshot)


if __name__ == "__main__":
    asyncio.run(main())
