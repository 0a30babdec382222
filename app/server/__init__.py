import asyncio
import os
from typing import Any, Optional

import aiohttp_cors
from aiohttp import web

from app.logger import logger
from app.roblox_tracker.http_session import close_session
from app.server.middlewares import error_middleware
from app.server.routes import routes

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))


async def _close_upstream_session(app: web.Application) -> None:
    await close_session()


def setup_cors(app: web.Application) -> aiohttp_cors.CorsConfig:
    """Any origin may call any route, with any request header."""
    cors = aiohttp_cors.setup(app, defaults={
        "*": aiohttp_cors.ResourceOptions(
            allow_credentials=False,
            expose_headers="*",
            allow_headers="*",
        )
    })
    for route in list(app.router.routes()):
        cors.add(route)
    return cors


def create_app() -> web.Application:
    app = web.Application(middlewares=[error_middleware])
    app.add_routes(routes)
    setup_cors(app)
    app.on_cleanup.append(_close_upstream_session)
    return app


class ProxyServer:
    """
    Owns the listening socket of the proxy.
    Nothing is bound until ``start`` is awaited and ``stop`` releases the socket and
    the upstream client session.
    """

    def __init__(self, host: str = HOST, port: int = PORT, app: Optional[web.Application] = None):
        self.host = host
        self.port = port
        self.app = app or create_app()
        self._runner: Optional[web.AppRunner] = None
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._runner is not None

    @property
    def addresses(self) -> list:
        """Bound socket addresses, useful when started on port 0."""
        return self._runner.addresses if self._runner is not None else []

    async def start(self) -> None:
        if self._runner is not None:
            return
        runner = web.AppRunner(self.app, access_log=logger)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner
        self._stopped.clear()
        logger.info(f"Server running on port {self.port}")
        logger.info(f"API documentation available at http://localhost:{self.port}")

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        self._stopped.set()
        logger.info("Server stopped.")

    async def serve_forever(self) -> None:
        await self.start()
        await self._stopped.wait()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_value: Any, tb: Any) -> None:
        await self.stop()
