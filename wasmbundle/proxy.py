"""Reverse proxies that forward HTTP requests and WebSockets to a backend."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlsplit

import aiohttp
from aiohttp import web

logger = logging.getLogger(__name__)

# Headers describing the framing of a message; the local side sets its own.
_SKIP_REQUEST_HEADERS = frozenset({"transfer-encoding"})
_SKIP_RESPONSE_HEADERS = frozenset({"transfer-encoding", "content-length"})


class ProxyError(Exception):
    """Raised when a request cannot be mapped onto the proxy backend."""


def make_outbound_uri(backend: str, request: str) -> str:
    """Join the backend URI with the path and query left over from ``request``.

    The backend's scheme and authority are kept, the backend path comes first,
    followed by the request path and, if present, the request query.
    """
    backend_parts = urlsplit(backend)
    request_no_fragment = request.split("#", 1)[0]
    request_parts = urlsplit(request_no_fragment)

    backend_path = backend_parts.path.lstrip("/")
    request_path = request_parts.path.lstrip("/")

    separator = ""
    if backend_path and request_path and not backend_path.endswith("/"):
        separator = "/"

    query = ""
    if "?" in request_no_fragment:
        query = "?" + request_parts.query

    if not backend_parts.scheme or not backend_parts.netloc:
        raise ProxyError(f"error building proxy request to backend {backend!r}")

    return (
        f"{backend_parts.scheme}://{backend_parts.netloc}"
        f"/{backend_path}{separator}{request_path}{query}"
    )


def _listen_path(backend: str, rewrite: str | None) -> str:
    if rewrite is not None:
        return rewrite
    return urlsplit(backend).path or "/"


def _route_patterns(prefix: str) -> tuple[str, list[str]]:
    base = prefix.rstrip("/")
    if not base:
        return base, ["/{tail:.*}"]
    return base, [base, base + "/{tail:.*}"]


def _remaining_uri(request: web.Request, base: str) -> str:
    """The request's path below ``base`` plus its query, as a nested router sees it."""
    raw_path = request.rel_url.raw_path
    rest = raw_path[len(base):] if base and raw_path.startswith(base) else raw_path
    if not rest.startswith("/"):
        rest = "/" + rest
    if "?" in request.raw_path:
        rest += "?" + request.rel_url.raw_query_string
    return rest


class ProxyHandlerHttp:
    """Forwards HTTP requests below a listening path to a backend.

    A supplied ``client`` should be created with ``auto_decompress=False`` so that
    bodies pass through unchanged. Without one, the handler creates its own.
    """

    def __init__(
        self,
        backend: str,
        rewrite: str | None = None,
        client: aiohttp.ClientSession | None = None,
        insecure: bool = False,
    ) -> None:
        self.backend = backend
        self.rewrite = rewrite
        self.insecure = insecure
        self._client = client
        self._owns_client = False

    def path(self) -> str:
        """The path this proxy listens at."""
        return _listen_path(self.backend, self.rewrite)

    def register(self, app: web.Application) -> web.Application:
        """Add this proxy's routes to ``app`` and return it."""
        _, patterns = _route_patterns(self.path())
        for pattern in patterns:
            app.router.add_route("*", pattern, self.handle)
        app.on_cleanup.append(self._close_client)
        return app

    def _session(self) -> aiohttp.ClientSession:
        if self._client is None or self._client.closed:
            connector = aiohttp.TCPConnector(ssl=False) if self.insecure else None
            self._client = aiohttp.ClientSession(
                connector=connector, auto_decompress=False
            )
            self._owns_client = True
        return self._client

    async def _close_client(self, _app: web.Application) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """Proxy ``request`` to the backend and stream the answer back."""
        base, _ = _route_patterns(self.path())
        try:
            outbound = make_outbound_uri(self.backend, _remaining_uri(request, base))
        except ProxyError:
            logger.exception("error handling request")
            return web.Response(status=500)

        headers = request.headers.copy()
        for name in _SKIP_REQUEST_HEADERS:
            headers.popall(name, None)
        host = urlsplit(self.backend).hostname
        if host:
            headers.popall("Host", None)
            headers["Host"] = host

        body = await request.read()
        response: web.StreamResponse | None = None
        try:
            async with self._session().request(
                request.method, outbound, headers=headers, data=body or None
            ) as backend_res:
                response = web.StreamResponse(status=backend_res.status)
                for name, value in backend_res.headers.items():
                    if name.lower() not in _SKIP_RESPONSE_HEADERS:
                        response.headers.add(name, value)
                await response.prepare(request)
                async for chunk in backend_res.content.iter_any():
                    await response.write(chunk)
                await response.write_eof()
                return response
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError):
            logger.exception("error proxying request to proxy backend")
            if response is not None and response.prepared:
                return response
            return web.Response(status=500)


async def _pump(source, sink, direction: str) -> None:
    while True:
        msg = await source.receive()
        try:
            if msg.type is aiohttp.WSMsgType.TEXT:
                await sink.send_str(msg.data)
            elif msg.type is aiohttp.WSMsgType.BINARY:
                await sink.send_bytes(msg.data)
            elif msg.type is aiohttp.WSMsgType.PING:
                await sink.ping(msg.data)
            elif msg.type is aiohttp.WSMsgType.PONG:
                await sink.pong(msg.data)
            elif msg.type is aiohttp.WSMsgType.CLOSE:
                await sink.close(
                    code=msg.data or 1000, message=(msg.extra or "").encode()
                )
                return
            else:
                return
        except (ConnectionError, RuntimeError, aiohttp.ClientError):
            logger.exception("error forwarding %s WebSocket message", direction)
            return


class ProxyHandlerWebSocket:
    """Forwards WebSocket connections below a listening path to a backend."""

    def __init__(self, backend: str, rewrite: str | None = None) -> None:
        self.backend = backend
        self.rewrite = rewrite

    def path(self) -> str:
        """The path this proxy listens at."""
        return _listen_path(self.backend, self.rewrite)

    def register(self, app: web.Application) -> web.Application:
        """Add this proxy's routes to ``app`` and return it."""
        _, patterns = _route_patterns(self.path())
        for pattern in patterns:
            app.router.add_get(pattern, self.handle, allow_head=False)
        return app

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """Upgrade the connection and relay messages both ways until one side ends."""
        frontend = web.WebSocketResponse(autoping=False)
        if not frontend.can_prepare(request).ok:
            return web.Response(status=400, text="expected a WebSocket upgrade")
        await frontend.prepare(request)
        logger.debug("new websocket connection")

        base, _ = _route_patterns(self.path())
        request_uri = _remaining_uri(request, base)
        try:
            outbound = make_outbound_uri(self.backend, request_uri)
        except ProxyError:
            logger.exception("failed to build proxy uri from %r", request_uri)
            await frontend.close()
            return frontend

        async with aiohttp.ClientSession() as session:
            try:
                backend = await session.ws_connect(outbound, autoping=False)
            except (aiohttp.ClientError, OSError):
                logger.exception(
                    "error establishing WebSocket connection to backend %r for proxy",
                    outbound,
                )
                await frontend.close()
                return frontend

            tasks = [
                asyncio.create_task(_pump(frontend, backend, "frontend to backend")),
                asyncio.create_task(_pump(backend, frontend, "backend to frontend")),
            ]
            try:
                _, pending = await asyncio.wait(
                    tasks, return_when=asyncio.FIRST_COMPLETED
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
            finally:
                await backend.close()

        await frontend.close()
        logger.debug("websocket connection closed")
        return frontend