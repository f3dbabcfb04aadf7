"""Unit test conftest: an in-process fake backend served over ASGITransport.

``FakeBackend`` implements the summarizer API (``/upload``, ``/summarize``,
``/history``, ``/delete-item``) and a pre-signed storage PUT endpoint as one
FastAPI app. Every request is recorded so tests can assert on exactly which
calls were made.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from httpx import ASGITransport

from summarizer_client.api import BackendClient
from summarizer_client.auth import StaticTokenSource
from summarizer_client.config import DEFAULT_MAX_UPLOAD_BYTES, ClientConfig
from summarizer_client.workflow import WorkflowController, build_controller

API_BASE_URL = "http://api.test"
STORAGE_HOST = "http://storage.test"
TEST_TOKEN = "test-token"

_EPOCH_MS = 1_700_000_000_000


@dataclass
class RecordedCall:
    method: str
    path: str
    headers: dict[str, str]
    json: Any = None
    params: dict[str, str] = field(default_factory=dict)
    content: bytes = b""


class FakeBackend:
    def __init__(self) -> None:
        self.calls: list[RecordedCall] = []
        self.stored: dict[str, bytes] = {}
        self.records: list[dict[str, Any]] = []  # newest first
        self.failures: dict[str, tuple[int, str]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.summary_text: str | None = None
        self._uploads = 0
        self.app = self._build_app()

    # -- Test controls ----------------------------------------------------------

    def fail(self, route: str, status: int, body: str = "") -> None:
        """Make *route* ("/upload", "/storage", ...) answer with *status*."""
        self.failures[route] = (status, body)

    def hold(self, route: str) -> asyncio.Event:
        """Block *route* until the returned event is set."""
        gate = asyncio.Event()
        self.gates[route] = gate
        return gate

    def seed(self, file_key: str, preview: str = "", summary: str | None = None) -> None:
        """Append an existing record (older than everything already seeded)."""
        created = datetime(2024, 1, 1, tzinfo=UTC) - timedelta(minutes=len(self.records))
        self.records.append(
            {
                "fileKey": file_key,
                "createdAt": created.isoformat(),
                "summaryPreview": preview or f"Preview of {file_key}",
                "summary": summary,
            }
        )

    def calls_to(self, method: str, path: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.method == method and c.path.startswith(path)]

    # -- App ------------------------------------------------------------------

    async def _record(self, request: Request, route: str) -> Response | None:
        body = await request.body()
        is_json = request.headers.get("content-type", "").startswith("application/json")
        self.calls.append(
            RecordedCall(
                method=request.method,
                path=request.url.path,
                headers=dict(request.headers),
                json=await request.json() if is_json and body else None,
                params=dict(request.query_params),
                content=body,
            )
        )

        gate = self.gates.get(route)
        if gate is not None:
            await gate.wait()

        if route != "/storage" and request.headers.get("authorization") != f"Bearer {TEST_TOKEN}":
            return JSONResponse(status_code=401, content={"message": "Unauthorized"})
        if route in self.failures:
            status, text = self.failures[route]
            return PlainTextResponse(text, status_code=status)
        return None

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.post("/upload")
        async def upload(request: Request) -> Response:
            if (err := await self._record(request, "/upload")) is not None:
                return err
            body = await request.json()
            self._uploads += 1
            key = f"{_EPOCH_MS + self._uploads - 1}-{body['fileName']}"
            return JSONResponse({"uploadUrl": f"{STORAGE_HOST}/storage/{key}?X-Sig=abc", "fileKey": key})

        @app.put("/storage/{key:path}")
        async def put_object(key: str, request: Request) -> Response:
            if (err := await self._record(request, "/storage")) is not None:
                return err
            self.stored[key] = await request.body()
            return Response(status_code=200)

        @app.post("/summarize")
        async def summarize(request: Request) -> Response:
            if (err := await self._record(request, "/summarize")) is not None:
                return err
            key = (await request.json())["fileKey"]
            if key not in self.stored:
                return PlainTextResponse("object not found", status_code=404)
            text = self.summary_text if self.summary_text is not None else f"Summary of {key}."
            self.records.insert(
                0,
                {
                    "fileKey": key,
                    "createdAt": datetime.now(UTC).isoformat(),
                    "summaryPreview": text[:200],
                    "summary": text,
                },
            )
            return JSONResponse({"summary": text})

        @app.get("/history")
        async def history(request: Request) -> Response:
            # Listed before any hold, so a held response can be stale.
            limit = int(request.query_params.get("limit", "20"))
            items = list(self.records[:limit])
            if (err := await self._record(request, "/history")) is not None:
                return err
            return JSONResponse({"items": items})

        @app.post("/delete-item")
        async def delete_item(request: Request) -> Response:
            if (err := await self._record(request, "/delete-item")) is not None:
                return err
            key = (await request.json())["fileKey"]
            self.records = [r for r in self.records if r["fileKey"] != key]
            return JSONResponse({"message": f"Deleted {key}"})

        return app


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def backend(fake_backend: FakeBackend):
    """BackendClient wired to the fake backend app."""
    transport = ASGITransport(app=fake_backend.app)
    async with httpx.AsyncClient(transport=transport) as http_client:
        yield BackendClient(API_BASE_URL, client=http_client)


@pytest.fixture
def cfg() -> ClientConfig:
    return ClientConfig(
        api_base_url=API_BASE_URL,
        http_timeout_seconds=5.0,
        max_upload_bytes=DEFAULT_MAX_UPLOAD_BYTES,
        history_limit=20,
        history_refresh_delay=0.0,
        ready_display_seconds=0.0,
        token=TEST_TOKEN,
        token_file=None,
        log_json=False,
    )


@pytest.fixture
def confirm() -> AsyncMock:
    return AsyncMock(return_value=True)


@pytest.fixture
async def controller(cfg: ClientConfig, backend: BackendClient, confirm: AsyncMock):
    """WorkflowController with zero settle delays; background tasks cancelled on teardown."""
    controller: WorkflowController = build_controller(
        cfg, backend, StaticTokenSource(TEST_TOKEN), confirm=confirm
    )
    yield controller
    await controller.aclose()
