"""Test helpers for inspecting CORS responses and driving ASGI apps.

Provides:
- vary_tokens(): Parse a Vary header into a set of field names
- AsgiRecorder: Collects messages sent by an ASGI app
- http_scope(): Minimal HTTP scope builder
"""

from typing import Any


def vary_tokens(headers: Any) -> set[str]:
    """Return the Vary field names of a response (empty set when absent)."""
    value = headers.get("vary")
    if value is None:
        return set()
    return {token.strip() for token in value.split(",") if token.strip()}


def http_scope(
    method: str = "GET",
    path: str = "/",
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a minimal ASGI HTTP scope."""
    raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "root_path": "",
        "headers": raw,
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }


class AsgiRecorder:
    """Collects ASGI messages and exposes the response start headers."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def start(self) -> dict[str, Any]:
        return next(m for m in self.messages if m["type"] == "http.response.start")

    @property
    def status(self) -> int:
        return self.start["status"]

    @property
    def headers(self) -> dict[str, str]:
        """Response headers keyed by lowercase name (last value wins)."""
        return {
            k.decode("latin-1").lower(): v.decode("latin-1")
            for k, v in self.start.get("headers", [])
        }

    @property
    def body(self) -> bytes:
        return b"".join(
            m.get("body", b"") for m in self.messages if m["type"] == "http.response.body"
        )


async def empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


async def plain_app(scope: dict[str, Any], receive: Any, send: Any) -> None:
    """Downstream app answering 200 "ok" with a Vary: Accept-Encoding header."""
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [(b"content-type", b"text/plain"), (b"vary", b"Accept-Encoding")],
        }
    )
    await send({"type": "http.response.body", "body": b"ok"})
