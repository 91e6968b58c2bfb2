#!/usr/bin/env python3
# cli.py: command-line entry point for hurley

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.text import Text

from hurley.client import HttpClient
from hurley.dataset import Dataset
from hurley.errors import HurleyError
from hurley.logging_config import level_from_flags, setup_logging
from hurley.report import print_report, print_response
from hurley.request import HttpRequest
from hurley.runner import PerfRunner
from hurley.utils import GracefulKiller

logger = logging.getLogger(__name__)


def _int_at_least(minimum: int):
    def parse(value: str) -> int:
        try:
            number = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
        if number < minimum:
            raise argparse.ArgumentTypeError(f"must be >= {minimum}, got {number}")
        return number

    return parse


positive_int = _int_at_least(1)
non_negative_int = _int_at_least(0)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hurley",
        description="A curl-like HTTP client with performance testing capabilities",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("url", help="Target URL (base URL in performance mode)")

    # Request Options
    parser.add_argument("-X", "--method", default="GET", help="HTTP method")
    parser.add_argument(
        "-H",
        "--header",
        dest="headers",
        action="append",
        default=[],
        help='Request header as "Key: Value" (repeatable)',
    )
    parser.add_argument("-d", "--data", default=None, help="Request body")
    parser.add_argument("-f", "--file", dest="body_file", default=None, help="Read request body from file")
    parser.add_argument(
        "-i",
        "--include",
        dest="include_headers",
        action="store_true",
        help="Include response status line and headers in output",
    )
    parser.add_argument(
        "-L",
        "--location",
        dest="follow_redirects",
        action="store_true",
        help="Follow redirects (up to 10)",
    )
    parser.add_argument("--timeout", type=float, default=30.0, help="Per-request timeout in seconds")

    # Performance Options
    parser.add_argument("--perf", dest="perf_file", default=None, help="Dataset file (JSON array, object or NDJSON)")
    parser.add_argument("-c", "--concurrency", type=positive_int, default=1, help="Maximum concurrent requests")
    parser.add_argument("-n", "--requests", dest="total_requests", type=non_negative_int, default=1, help="Total number of requests")
    parser.add_argument(
        "--output",
        dest="output_format",
        default="text",
        choices=["text", "json"],
        type=str.lower,
        help="Performance report format",
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    # Logging & Debugging
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Enable debug-level logging")
    parser.add_argument("--log-file", type=str, default=None, help="Optional file to write logs to")

    return parser.parse_args(argv)


def is_perf_mode(args: argparse.Namespace) -> bool:
    return args.perf_file is not None or args.total_requests != 1 or args.concurrency > 1


def build_base_request(args: argparse.Namespace) -> HttpRequest:
    request = (
        HttpRequest(args.url)
        .with_method(args.method)
        .with_headers_from_strings(args.headers)
        .with_timeout(args.timeout)
        .with_follow_redirects(args.follow_redirects)
    )
    if args.data is not None:
        request = request.with_body(args.data)
    elif args.body_file is not None:
        request = request.with_body_from_file(args.body_file)
    return request


async def run_single_request(args: argparse.Namespace, request: HttpRequest, console: Console) -> None:
    if args.verbose:
        err = Console(stderr=True)
        err.print(Text.assemble((">>> Request ", "bold blue"), (request.method, "green"), " ", (request.url, "cyan")))
        for key, value in request.headers.items():
            err.print(Text.assemble((key, "yellow"), f": {value}"))
    async with HttpClient() as client:
        response = await client.execute(request)
    print_response(response, include_headers=args.include_headers, verbose=args.verbose, console=console)


async def run_perf_test(args: argparse.Namespace, base_request: HttpRequest, console: Console) -> None:
    err = Console(stderr=True)
    err.print("[bold cyan]🚀 Starting Performance Test[/]")
    err.print(Text.assemble("   URL: ", (args.url, "yellow")))
    err.print(f"   Concurrency: {args.concurrency}")
    err.print(f"   Total Requests: {args.total_requests}")

    if args.perf_file:
        err.print(Text.assemble("   Dataset: ", (args.perf_file, "yellow")))
        dataset = Dataset.from_file(args.perf_file)
    else:
        # Keep one entry even for -n 0 so planning yields an empty run, not an error.
        dataset = Dataset.simple(max(1, args.total_requests))
    err.print()

    runner = PerfRunner(
        base_url=args.url,
        base_request=base_request,
        concurrency=args.concurrency,
        total_requests=args.total_requests,
        verbose=args.verbose,
        use_progress_bar=not args.no_progress,
    )

    killer = GracefulKiller()
    try:
        snapshot = await runner.run(dataset, cancel_event=killer.event)
    finally:
        killer.restore()

    print_report(snapshot, args.output_format, console=console)


async def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    setup_logging(level=level_from_flags(args.debug, args.verbose), log_file=args.log_file)

    console = Console()
    try:
        base_request = build_base_request(args)
        if is_perf_mode(args):
            await run_perf_test(args, base_request, console)
        else:
            await run_single_request(args, base_request, console)
    except HurleyError as e:
        logger.debug("Run aborted", exc_info=True)
        Console(stderr=True).print(Text.assemble(("Error:", "bold red"), f" {e}"), soft_wrap=True)
        return 1
    return 0


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
