"""Bearer token authentication for the API server."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator
    from pathlib import Path


class BearerTokenAuth(httpx.Auth):
    """Attach a static token, or the current contents of a token file, to each request.

    The file is read off the event loop for async clients, so projected service
    account tokens can rotate without blocking other requests.
    """

    def __init__(self, *, token: str | None = None, token_path: Path | None = None) -> None:
        if token is None and token_path is None:
            raise ValueError("Either token or token_path is required")
        self._token = token
        self._token_path = token_path

    def current_token(self) -> str:
        if self._token is not None:
            return self._token
        if self._token_path is None:
            raise ValueError("Either token or token_path is required")
        return self._token_path.read_text(encoding="utf-8").strip()

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response]:
        request.headers["Authorization"] = f"Bearer {self.current_token()}"
        yield request

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = self._token if self._token is not None else await asyncio.to_thread(
            self.current_token
        )
        request.headers["Authorization"] = f"Bearer {token}"
        yield request
