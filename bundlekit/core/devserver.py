"""
Development server

Serves the build output directory over HTTP while the compiler rebuilds it
in watch mode. Unknown extension-less paths fall back to index.html so
client-side routers can own the URL space.
"""

import logging
import posixpath
import socket
import threading
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

import uvicorn
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Scope

from .constants import HISTORY_FALLBACK_DOCUMENT
from .errors import BindError

logger = logging.getLogger(__name__)


class ResponseHeadersMiddleware(BaseHTTPMiddleware):
    """Adds fixed headers to every response"""

    def __init__(self, app: ASGIApp, headers: Optional[Dict[str, str]] = None):
        super().__init__(app)
        self.headers = dict(headers or {})

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers[name] = value
        return response


class HistoryFallbackFiles(StaticFiles):
    """Static files that answer unknown routes with index.html"""

    def __init__(self, *args, fallback: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.fallback = fallback

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            # Dotted paths are asset requests and keep their 404
            if exc.status_code != 404 or not self.fallback or "." in posixpath.basename(path):
                raise
            logger.debug(f"History fallback for /{path}")
            return await super().get_response(HISTORY_FALLBACK_DOCUMENT, scope)


class DevServer:
    """Static development server bound to a watching compiler"""

    def __init__(self, compiler, options: Dict[str, Any]):
        self.compiler = compiler
        self.options = options

        self.server: Optional[uvicorn.Server] = None
        self.server_thread: Optional[threading.Thread] = None
        self.watching: Any = None
        self.last_stats: Any = None
        self.last_error: Optional[BaseException] = None

        self._on_listening: Optional[Callable[[], None]] = None
        self.app = self._create_application()

    def _create_application(self) -> Starlette:
        files = HistoryFallbackFiles(
            directory=self.options["content_base"],
            html=True,
            check_dir=False,
            fallback=self.options.get("history_api_fallback", True),
        )
        app = Starlette(routes=[Mount("/", app=files)], lifespan=self._lifespan)
        app.add_middleware(ResponseHeadersMiddleware, headers=self.options.get("headers"))
        return app

    @asynccontextmanager
    async def _lifespan(self, app: Starlette):
        if self._on_listening is not None:
            self._on_listening()
        yield

    def _on_compiled(self, error: Optional[BaseException], stats: Any) -> None:
        self.last_error = error
        if error is not None:
            logger.error(f"Rebuild failed: {error}")
            return
        self.last_stats = stats
        if not self.options.get("no_info"):
            logger.info("Rebuild completed")

    def _bind(self, port: int, host: str) -> socket.socket:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
            sock.listen(128)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind development server to {host}:{port}: {e}")
            raise BindError(host, port, str(e)) from e
        return sock

    def listen(self, port: int, host: str, callback: Optional[Callable[[], None]] = None) -> threading.Thread:
        """
        Bind host:port and serve on a background thread

        Raises:
            BindError: If the address cannot be bound
        """
        sock = self._bind(port, host)
        self._on_listening = callback

        if not self.options.get("lazy"):
            self.watching = self.compiler.watch(self.options.get("watch_options", {}), self._on_compiled)

        config = uvicorn.Config(
            self.app,
            log_level="warning" if self.options.get("quiet") else "info",
            access_log=not self.options.get("no_info"),
            lifespan="on",
        )
        self.server = uvicorn.Server(config)
        self.server_thread = threading.Thread(
            target=self.server.run,
            kwargs={"sockets": [sock]},
            daemon=True,
        )
        self.server_thread.start()

        logger.info(f"Development server listening on http://{host}:{port}")
        return self.server_thread

    def close(self) -> None:
        """Stop serving and stop the watching compiler"""
        if self.server is not None:
            self.server.should_exit = True
        if self.server_thread is not None and self.server_thread.is_alive():
            self.server_thread.join(timeout=5.0)
        if self.watching is not None:
            self.watching.close()
        logger.info("Development server stopped")
