import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import unused_port

from hurley.client import HttpClient, HttpResponse
from hurley.dataset import Dataset, DatasetEntry
from hurley.errors import RequestError
from hurley.request import HttpRequest
from hurley.runner import PerfRunner


async def echo(request: web.Request) -> web.Response:
    body = await request.text()
    return web.json_response(
        {"method": request.method, "body": body, "x_test": request.headers.get("X-Test")}
    )


async def slow(request: web.Request) -> web.Response:
    await asyncio.sleep(1.0)
    return web.Response(text="late")


async def status(request: web.Request) -> web.Response:
    return web.Response(status=int(request.match_info["code"]), text="status")


async def redirect(request: web.Request) -> web.Response:
    raise web.HTTPFound("/echo")


@pytest.fixture
async def server_url():
    app = web.Application()
    app.router.add_route("*", "/echo", echo)
    app.router.add_get("/slow", slow)
    app.router.add_get("/status/{code}", status)
    app.router.add_get("/redirect", redirect)
    runner = web.AppRunner(app)
    await runner.setup()
    port = unused_port()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield f"http://127.0.0.1:{port}"
    await runner.cleanup()


@pytest.mark.asyncio
async def test_execute_post_with_headers(server_url):
    request = (
        HttpRequest(f"{server_url}/echo")
        .with_method("POST")
        .with_header("X-Test", "yes")
        .with_body('{"k": 1}')
    )
    async with HttpClient() as client:
        response = await client.execute(request)
    assert response.status == 200
    assert response.is_success()
    assert '"method": "POST"' in response.body
    assert '"x_test": "yes"' in response.body
    assert response.elapsed_s > 0


@pytest.mark.asyncio
async def test_non_2xx_is_returned_not_raised(server_url):
    async with HttpClient() as client:
        response = await client.execute(HttpRequest(f"{server_url}/status/503"))
    assert response.status == 503
    assert response.is_server_error()
    assert not response.is_success()


@pytest.mark.asyncio
async def test_timeout_raises_request_error(server_url):
    async with HttpClient() as client:
        with pytest.raises(RequestError, match="timed out"):
            await client.execute(HttpRequest(f"{server_url}/slow").with_timeout(0.1))


@pytest.mark.asyncio
async def test_connection_refused_raises_request_error():
    async with HttpClient() as client:
        with pytest.raises(RequestError):
            await client.execute(HttpRequest("http://127.0.0.1:9/").with_timeout(2))


@pytest.mark.asyncio
async def test_redirect_policy(server_url):
    async with HttpClient() as client:
        followed = await client.execute(HttpRequest(f"{server_url}/redirect"))
        not_followed = await client.execute(
            HttpRequest(f"{server_url}/redirect").with_follow_redirects(False)
        )
    assert followed.status == 200
    assert not_followed.status == 302


@pytest.mark.asyncio
async def test_execute_outside_context_fails():
    with pytest.raises(RuntimeError):
        await HttpClient().execute(HttpRequest("http://127.0.0.1:9/"))


def test_response_status_line():
    response = HttpResponse(status=404, reason="Not Found")
    assert response.status_line() == "HTTP/1.1 404 Not Found"
    assert response.is_client_error()


@pytest.mark.asyncio
async def test_perf_run_against_local_server(server_url):
    runner = PerfRunner(
        base_url=server_url,
        base_request=HttpRequest(server_url).with_timeout(0.2),
        concurrency=4,
        total_requests=12,
        use_progress_bar=False,
    )
    dataset = Dataset(
        [
            DatasetEntry(path="/echo"),
            DatasetEntry(path="/status/500"),
            DatasetEntry(path="/slow"),
        ]
    )
    snapshot = await runner.run(dataset)
    assert snapshot.total_requests == 12
    assert snapshot.successful_requests == 4
    assert snapshot.failed_requests == 8
    assert snapshot.latency_max_ms >= 150.0
    assert snapshot.latency_min_ms <= snapshot.latency_p50_ms <= snapshot.latency_max_ms
