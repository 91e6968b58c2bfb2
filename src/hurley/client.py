import asyncio
import logging
from dataclasses import dataclass, field

import aiohttp

from .errors import RequestError
from .request import MAX_REDIRECTS, HttpRequest
from .utils import now

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    status: int
    reason: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    elapsed_s: float = 0.0

    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    def is_server_error(self) -> bool:
        return 500 <= self.status < 600

    def status_line(self) -> str:
        return f"HTTP/1.1 {self.status} {self.reason}".rstrip()


class HttpClient:
    """
    Executes single requests over one shared aiohttp session.

    Use as an async context manager; the session is closed on exit.
    Timeout and redirect policy come from each request.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None):
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpClient":
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=0)
            self._session = aiohttp.ClientSession(connector=connector)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def execute(self, request: HttpRequest) -> HttpResponse:
        if self._session is None:
            raise RuntimeError("HttpClient used outside of 'async with'")

        timeout = aiohttp.ClientTimeout(total=request.timeout_s)
        start = now()
        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=timeout,
                allow_redirects=request.follow_redirects,
                max_redirects=MAX_REDIRECTS,
            ) as resp:
                body = await resp.text(errors="replace")
                elapsed = now() - start
                logger.debug(
                    f"{request.method} {request.url}: status={resp.status}, size={len(body)} chars"
                )
                return HttpResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers={k: v for k, v in resp.headers.items()},
                    body=body,
                    elapsed_s=elapsed,
                )
        except asyncio.TimeoutError as e:
            logger.debug(f"Timeout after {request.timeout_s}s for {request.url}")
            raise RequestError(request.url, f"timed out after {request.timeout_s}s") from e
        except aiohttp.ClientError as e:
            logger.debug(f"Transport error for {request.url}: {e}")
            raise RequestError(request.url, str(e) or type(e).__name__) from e
