"""
CORS middleware with per-path preflight passthrough.
"""

from typing import Iterable

from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


class ScopedCORSMiddleware(CORSMiddleware):
    """
    CORSMiddleware that lets some routes answer their own preflight.

    Preflight requests to ``open_paths`` are passed to the application so the
    route can reply with its own (permissive) headers. Every other request,
    including the actual requests to those paths, goes through the regular
    origin checks.
    """

    def __init__(self, app: ASGIApp, open_paths: Iterable[str] = (), **kwargs):
        super().__init__(app, **kwargs)
        self.open_paths = frozenset(open_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] == "http"
            and scope["method"] == "OPTIONS"
            and scope["path"] in self.open_paths
        ):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)
