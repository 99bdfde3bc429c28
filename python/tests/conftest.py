"""Pytest configuration and fixtures for corsgate tests.

Test isolation strategy:
- Settings cache is cleared around every test
- Each end-to-end test builds its own app, so no policy state is shared
- ASGI-level tests drive the middleware directly with hand-built scopes
"""

from collections.abc import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from corsgate.config import clear_settings_cache
from corsgate.middleware.cors import CORSMiddleware
from corsgate.resolver import OptionsSource


@pytest.fixture(autouse=True)
def _clear_settings() -> Generator[None, None, None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


def build_app(options: OptionsSource = None) -> FastAPI:
    """Create a small app wrapped in CORSMiddleware.

    Routes:
        GET /: plain "Homepage"
        OPTIONS /: downstream preflight handler (only reached with preflight_continue)
        GET /vary: response that already carries Vary: Accept-Encoding
        GET /own-origin: response that sets its own Access-Control-Allow-Origin
    """
    app = FastAPI()

    @app.get("/")
    async def homepage() -> PlainTextResponse:
        return PlainTextResponse("Homepage")

    @app.options("/")
    async def downstream_preflight() -> PlainTextResponse:
        return PlainTextResponse("downstream", status_code=200)

    @app.get("/vary")
    async def with_vary() -> PlainTextResponse:
        return PlainTextResponse("varies", headers={"Vary": "Accept-Encoding"})

    @app.get("/own-origin")
    async def own_origin() -> PlainTextResponse:
        return PlainTextResponse(
            "own", headers={"Access-Control-Allow-Origin": "https://downstream.test"}
        )

    app.add_middleware(CORSMiddleware, options=options)
    return app


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    """Factory fixture: make_client(options) -> TestClient."""

    def _make(options: OptionsSource = None, **client_kwargs) -> TestClient:
        return TestClient(build_app(options), **client_kwargs)

    return _make
