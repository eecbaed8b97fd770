"""
Shared fixtures:
- a throwaway SQLite database (aiosqlite) with the weapons table created
- a fake Tripo API served by aiohttp's test server
- an httpx client bound to the FastAPI app via ASGITransport
"""
from __future__ import annotations

from typing import Any

import aiohttp
import httpx
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine

from armory.core.config import Settings
from armory.core.context import AppContext
from armory.core.database import build_session_factory, init_db
from armory.main import create_app

TRIPO_API_KEY = "test-tripo-key"
UNREACHABLE_BASE_URL = "http://127.0.0.1:1/v2/openapi"


def make_settings(**overrides: Any) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite://",
        "tripo_api_key": TRIPO_API_KEY,
        "app_env": "test",
        "auto_create_tables": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeTripo:
    """In-process stand-in for the Tripo OpenAPI; records every request it gets."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.base_url = ""

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/v2/openapi/task", self.create_task)
        app.router.add_get("/v2/openapi/task/{task_id}", self.get_task)
        return app

    async def create_task(self, request: web.Request) -> web.Response:
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "authorization": request.headers.get("Authorization"),
                "json": await request.json(),
            }
        )
        return web.Response(
            body=b'{"code":0,"data":{"task_id":"task-123"}}',
            headers={"Content-Type": "application/json"},
        )

    async def get_task(self, request: web.Request) -> web.Response:
        task_id = request.match_info["task_id"]
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "authorization": request.headers.get("Authorization"),
            }
        )
        if task_id == "missing":
            return web.Response(
                status=404,
                body=b'{"code":2001,"message":"task not found"}',
                headers={"Content-Type": "application/json"},
            )
        return web.Response(
            body=f"task {task_id} is running".encode(),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'armory.db'}")

    # Take the write lock at BEGIN so concurrent writers queue on the busy timeout
    @event.listens_for(engine.sync_engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def fake_tripo():
    fake = FakeTripo()
    server = TestServer(fake.build_app())
    await server.start_server()
    fake.base_url = str(server.make_url("/v2/openapi"))
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def http_session():
    async with aiohttp.ClientSession() as session:
        yield session


@pytest.fixture
def settings(fake_tripo):
    return make_settings(tripo_base_url=fake_tripo.base_url)


@pytest.fixture
def context(settings, session_factory, http_session):
    return AppContext(settings=settings, session_factory=session_factory, http=http_session)


@pytest.fixture
def client_for(session_factory, http_session):
    """Build an httpx client for an app wired to the given settings."""

    def _build(settings: Settings) -> httpx.AsyncClient:
        app = create_app(settings)
        app.state.context = AppContext(
            settings=settings,
            session_factory=session_factory,
            http=http_session,
        )
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    return _build


@pytest_asyncio.fixture
async def client(client_for, settings):
    async with client_for(settings) as c:
        yield c


@pytest_asyncio.fixture
async def offline_client(client_for):
    async with client_for(make_settings(tripo_base_url=UNREACHABLE_BASE_URL)) as c:
        yield c
