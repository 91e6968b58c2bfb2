import asyncio
import logging
import signal
import time

logger = logging.getLogger(__name__)

# ────────────────────────────────
# Time Helpers
# ────────────────────────────────


def now() -> float:
    return time.perf_counter()


# ────────────────────────────────
# URL Resolution
# ────────────────────────────────

ABSOLUTE_PREFIXES = ("http://", "https://")


def resolve_url(base_url: str, path: str | None) -> str:
    if path is None:
        return base_url
    if path.startswith(ABSOLUTE_PREFIXES):
        return path
    return base_url.rstrip("/") + path


# ────────────────────────────────
# Signal Handling
# ────────────────────────────────


class GracefulKiller:
    """Sets a cancellation event when SIGINT or SIGTERM arrives."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self.event = asyncio.Event()
        self._loop = loop or asyncio.get_running_loop()
        self._installed: list[signal.Signals] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self.exit_gracefully, sig)
                self._installed.append(sig)
            except (NotImplementedError, RuntimeError):
                logger.debug(f"Signal handler for {sig.name} not supported here")

    @property
    def kill_now(self) -> bool:
        return self.event.is_set()

    def exit_gracefully(self, sig: signal.Signals) -> None:
        if not self.event.is_set():
            logger.warning(f"Received {sig.name}. Stopping after in-flight requests are abandoned...")
        self.event.set()

    def restore(self) -> None:
        for sig in self._installed:
            self._loop.remove_signal_handler(sig)
        self._installed.clear()
