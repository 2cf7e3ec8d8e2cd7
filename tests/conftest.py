from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterable

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from todosync import models  # noqa: F401 - register tables on the metadata
from todosync.client import TodoRpcClient, TodoSurface
from todosync.core.config import Settings, get_settings
from todosync.core.security import create_identity_token
from todosync.deps import get_db_session
from todosync.main import create_app
from todosync.sync import BroadcastHub, EventSubscription, build_sync_bus

BASE_URL = "http://testserver"


class FlakyTransport(httpx.AsyncBaseTransport):
    """Forward to ``inner`` but fail requests whose path ends with one of ``failing``."""

    def __init__(self, inner: httpx.AsyncBaseTransport, failing: Iterable[str] = ()) -> None:
        self.inner = inner
        self.failing = set(failing)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if any(request.url.path.endswith(suffix) for suffix in self.failing):
            raise httpx.ConnectError("simulated outage", request=request)
        return await self.inner.handle_async_request(request)


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'todosync.db'}",
        jwt_secret_key="test-secret",
    )


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
def make_app(session_factory: async_sessionmaker[AsyncSession]) -> Callable[[Settings], FastAPI]:
    def _factory(app_settings: Settings) -> FastAPI:
        application = create_app(app_settings)

        async def _override_db_session() -> AsyncIterator[AsyncSession]:
            async with session_factory() as session:
                yield session

        application.dependency_overrides[get_db_session] = _override_db_session
        application.dependency_overrides[get_settings] = lambda: app_settings
        return application

    return _factory


@pytest_asyncio.fixture
async def app(make_app: Callable[[Settings], FastAPI], settings: Settings) -> AsyncIterator[FastAPI]:
    application = make_app(settings)
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as http_client:
        yield http_client


@pytest.fixture()
def issue_token(settings: Settings) -> Callable[[str], str]:
    def _issue(subject: str) -> str:
        return create_identity_token(subject=subject, settings=settings, email=f"{subject}@example.com")

    return _issue


@pytest.fixture()
def auth_headers(issue_token: Callable[[str], str]) -> Callable[[str], dict[str, str]]:
    def _headers(subject: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(subject)}"}

    return _headers


@pytest.fixture()
def hub() -> BroadcastHub:
    return BroadcastHub()


SurfaceFactory = Callable[..., Awaitable[TodoSurface]]


@pytest_asyncio.fixture
async def make_surface(app: FastAPI, settings: Settings, hub: BroadcastHub) -> AsyncIterator[SurfaceFactory]:
    surfaces: list[TodoSurface] = []

    async def _factory(
        name: str = "main",
        *,
        credential: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        host: EventSubscription | None = None,
        channel_hub: BroadcastHub | None = None,
        start: bool = True,
    ) -> TodoSurface:
        http = httpx.AsyncClient(transport=transport or ASGITransport(app=app), base_url=BASE_URL)
        rpc = TodoRpcClient(http, credential=credential, api_prefix=settings.api_prefix)
        surface = TodoSurface(
            rpc,
            build_sync_bus(settings, host=host, hub=channel_hub or hub),
            name=name,
            pending_limit=settings.pending_page_limit,
            completed_limit=settings.completed_page_limit,
        )
        surfaces.append(surface)
        if start:
            await surface.start()
        return surface

    try:
        yield _factory
    finally:
        for surface in surfaces:
            await surface.close()


@pytest.fixture()
def flaky_transport(app: FastAPI) -> Callable[..., FlakyTransport]:
    def _factory(*failing: str) -> FlakyTransport:
        return FlakyTransport(ASGITransport(app=app), failing)

    return _factory
