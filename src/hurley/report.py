import json

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .client import HttpResponse
from .models import Snapshot


def _section(title: str, rows: list[tuple[str, Text | str]]) -> Table:
    table = Table(title=title, title_justify="left", show_header=False, box=None, padding=(0, 3))
    table.add_column("metric", style="white")
    table.add_column("value", justify="right")
    for label, value in rows:
        table.add_row(label, value)
    return table


def render_text(snapshot: Snapshot) -> Panel:
    failed_style = "red" if snapshot.failed_requests > 0 else "green"
    summary = _section(
        "📊 Request Summary",
        [
            ("Total Requests", Text(str(snapshot.total_requests), style="cyan")),
            ("Successful", Text(str(snapshot.successful_requests), style="green")),
            ("Failed", Text(str(snapshot.failed_requests), style=failed_style)),
            ("Error Rate", f"{snapshot.error_rate_percent:.2f}%"),
        ],
    )
    timing = _section(
        "⏱️  Timing",
        [
            ("Total Duration", f"{snapshot.total_duration_ms:.2f} ms"),
            ("Requests/sec", Text(f"{snapshot.requests_per_second:.2f}", style="bold yellow")),
        ],
    )
    latency = _section(
        "📈 Latency Distribution",
        [
            ("Min", f"{snapshot.latency_min_ms:.2f} ms"),
            ("Max", f"{snapshot.latency_max_ms:.2f} ms"),
            ("Avg", f"{snapshot.latency_avg_ms:.2f} ms"),
            ("p50 (Median)", f"{snapshot.latency_p50_ms:.2f} ms"),
            ("p95", f"{snapshot.latency_p95_ms:.2f} ms"),
            ("p99", f"{snapshot.latency_p99_ms:.2f} ms"),
        ],
    )
    title = "PERFORMANCE RESULTS"
    if snapshot.cancelled:
        title += " (cancelled, partial)"
    return Panel(Group(summary, "", timing, "", latency), title=f"[bold cyan]{title}", border_style="cyan")


def render_json(snapshot: Snapshot) -> str:
    return json.dumps(snapshot.to_dict(), indent=2)


def print_report(snapshot: Snapshot, fmt: str = "text", console: Console | None = None) -> None:
    console = console or Console()
    if fmt.lower() == "json":
        # Plain print keeps the JSON free of markup and wrapping
        console.print(render_json(snapshot), markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(render_text(snapshot))


# ────────────────────────────────
# Single Response Output
# ────────────────────────────────


def _status_style(response: HttpResponse) -> str:
    if response.is_success():
        return "green"
    if response.is_client_error():
        return "yellow"
    if response.is_server_error():
        return "red"
    return ""


def format_body(body: str) -> str:
    try:
        return json.dumps(json.loads(body), indent=2, ensure_ascii=False)
    except ValueError:
        return body


def print_response(
    response: HttpResponse,
    include_headers: bool = False,
    verbose: bool = False,
    console: Console | None = None,
) -> None:
    console = console or Console()
    if verbose:
        console.print(Text(f"Time: {response.elapsed_s * 1000:.3f}ms", style="dim"))
        console.print()
    if include_headers:
        console.print(Text(response.status_line(), style=_status_style(response)))
        for key, value in response.headers.items():
            console.print(Text.assemble((key, "cyan"), f": {value}"))
        console.print()
    console.print(format_body(response.body), markup=False, highlight=False, soft_wrap=True)
