"""PlantUML text -> image rendering through the remote conversion service.

The service converts PlantUML posted as ``text/plain`` to ``/<format>``
(``/svg``, ``/png``) and answers with the raw image bytes.

The service is shared and rate limited, so every conversion in the process
goes through one FIFO queue drained by a single worker task: at most one
request is in flight at any time and requests are sent in submission order.
A failed request is logged, reported to its own caller, and never stops the
worker from serving the rest of the queue.

Server URL resolution order:
  1. ``server_url`` passed to ``ConversionQueue``
  2. ARCHLOOM_SERVER_URL env var
  3. The public arkit service
"""

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

import httpx

from ..exceptions import ConversionError, UnknownFormatError

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "https://arkit.herokuapp.com"

_FORMAT_CODE = re.compile(r"\w{3}")


def parse_format(format_token: str) -> str:
    """Extract the 3-letter format code from ``svg``, ``.png``, etc.

    Raises:
        UnknownFormatError: If the token holds no 3-letter run.
    """
    match = _FORMAT_CODE.search(format_token or "")
    if not match:
        raise UnknownFormatError(f"Cannot identify image format from {format_token!r}")
    return match.group(0)


@dataclass
class ConversionRequest:
    """One queued conversion and the future its caller awaits."""
    path: str        # "/svg"
    payload: str     # PlantUML source
    future: asyncio.Future


class ConversionQueue:
    """Serializes conversion requests against the remote service.

    The internal ``asyncio.Queue`` and worker task are bound to the running
    event loop; they are created lazily and re-created if the queue is used
    from a new loop (e.g. a second ``asyncio.run``).
    """

    def __init__(
        self,
        server_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        server = server_url or os.environ.get("ARCHLOOM_SERVER_URL", DEFAULT_SERVER)
        self.server_url = server.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def convert(self, puml: str, format_token: str) -> bytes:
        """Convert PlantUML source to image bytes.

        The format is validated before queueing, so an unknown format fails
        immediately without taking a queue slot.

        Raises:
            UnknownFormatError: If ``format_token`` has no format code.
            ConversionError: If the request to the service fails.
        """
        path = f"/{parse_format(format_token)}"

        self._ensure_worker()
        future = self._loop.create_future()
        await self._queue.put(ConversionRequest(path=path, payload=puml, future=future))
        logger.debug("Queued conversion %s (%d pending)", path, self._queue.qsize())
        return await future

    async def close(self):
        """Cancel the worker task. Pending callers are failed."""
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._fail_pending(ConversionError("Conversion queue closed"))
        self._worker = None
        self._queue = None
        self._loop = None

    # ── Internal helpers ──────────────────────────────────────────────

    def _ensure_worker(self):
        loop = asyncio.get_running_loop()
        if self._loop is loop and self._worker is not None and not self._worker.done():
            return

        self._loop = loop
        self._queue = asyncio.Queue()
        self._worker = loop.create_task(self._drain())
        logger.debug("Conversion worker started for %s", self.server_url)

    async def _drain(self):
        """Process queued requests one at a time, forever."""
        while True:
            request = await self._queue.get()
            try:
                if request.future.cancelled():
                    continue
                try:
                    image = await self._request(request.path, request.payload)
                except asyncio.CancelledError:
                    if not request.future.done():
                        request.future.set_exception(ConversionError("Conversion queue closed"))
                    raise
                except Exception as e:
                    logger.warning("Conversion %s failed: %s", request.path, e)
                    if not request.future.done():
                        request.future.set_exception(e)
                else:
                    if not request.future.done():
                        request.future.set_result(image)
            finally:
                self._queue.task_done()

    def _fail_pending(self, error: Exception):
        if self._queue is None:
            return
        while not self._queue.empty():
            request = self._queue.get_nowait()
            if not request.future.done():
                request.future.set_exception(error)

    async def _request(self, path: str, payload: str) -> bytes:
        """POST the PlantUML source and buffer the full response body."""
        url = f"{self.server_url}{path}"
        body = payload.encode("utf-8")

        logger.debug("Converting via %s (%d bytes)", url, len(body))

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url, content=body, headers={"Content-Type": "text/plain"}
                )
        except httpx.HTTPError as e:
            raise ConversionError(f"Conversion request to {url} failed: {e}") from e

        if response.status_code != 200:
            logger.warning(
                "Conversion server returned %d for %s, using body as-is",
                response.status_code,
                path,
            )
        return response.content


# ---------------------------------------------------------------------------
# Process-wide queue
# ---------------------------------------------------------------------------

_conversion_queue: Optional[ConversionQueue] = None


def get_conversion_queue(
    server_url: Optional[str] = None, timeout: Optional[float] = None
) -> ConversionQueue:
    """Return the process-wide conversion queue, creating it on first use.

    Arguments only apply on creation; later calls return the same queue and
    log when their settings differ from it.
    """
    global _conversion_queue
    if _conversion_queue is None:
        _conversion_queue = ConversionQueue(server_url=server_url, timeout=timeout)
        return _conversion_queue

    requested = server_url.rstrip("/") if server_url else None
    if (requested and requested != _conversion_queue.server_url) or (
        timeout is not None and timeout != _conversion_queue.timeout
    ):
        logger.debug(
            "Conversion queue already bound to %s (timeout=%s); ignoring %s (timeout=%s)",
            _conversion_queue.server_url,
            _conversion_queue.timeout,
            server_url,
            timeout,
        )
    return _conversion_queue
