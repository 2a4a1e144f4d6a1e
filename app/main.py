"""Entry point for the FastAPI-powered Seriesly backend."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import settings
from .database import Database
from .errors import AuthenticationError, ProviderError, StoreError
from .media_kinds import MOVIE, SERIES, MediaKind
from .services.local_store import LocalStoreGateway
from .services.reconciliation import ReconciliationService
from .services.tvdb import TVDBClient
from .services.tvdb_session import TVDBSessionCache

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tvdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.tvdb_api_url,
            timeout=httpx.Timeout(20.0, connect=10.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    session_cache = TVDBSessionCache(settings, tvdb_http_client)
    tvdb = TVDBClient(tvdb_http_client, session_cache)
    store = LocalStoreGateway(database.session_factory)
    reconciliation_service = ReconciliationService(store, tvdb)

    fastapi_app.state.reconciliation_service = reconciliation_service
    fastapi_app.state.session_cache = session_cache
    fastapi_app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Movie and series search backed by TheTVDB",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_reconciliation_service(fastapi_app: FastAPI) -> ReconciliationService:
    service = getattr(fastapi_app.state, "reconciliation_service", None)
    if not isinstance(service, ReconciliationService):
        raise RuntimeError("Reconciliation service not initialised")
    return service


def get_session_cache(fastapi_app: FastAPI) -> TVDBSessionCache:
    cache = getattr(fastapi_app.state, "session_cache", None)
    if not isinstance(cache, TVDBSessionCache):
        raise RuntimeError("TheTVDB session cache not initialised")
    return cache


def _require_api_key() -> str:
    if not settings.tvdb_api_key:
        raise HTTPException(status_code=500, detail="TVDB API key is not configured.")
    return settings.tvdb_api_key


def register_routes(fastapi_app: FastAPI) -> None:
    async def _search_endpoint(
        title: str | None, kind: MediaKind, not_found: str
    ) -> JSONResponse:
        if not title or not title.strip():
            raise HTTPException(
                status_code=400, detail="Title query parameter is required."
            )
        api_key = _require_api_key()
        service = get_reconciliation_service(fastapi_app)

        try:
            entities = await service.get_or_create(title.strip(), api_key, kind)
        except AuthenticationError as exc:
            logger.exception("TheTVDB authentication failed for %r", title)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except ProviderError as exc:
            logger.exception("TheTVDB search failed for %r", title)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except StoreError as exc:
            logger.exception("Local store failed while searching %r", title)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

        if not entities:
            raise HTTPException(status_code=404, detail=not_found)
        return JSONResponse(jsonable_encoder(entities))

    @fastapi_app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return f"{settings.app_name} Backend Running"

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/search")
    async def search_movies(title: str | None = Query(default=None)) -> JSONResponse:
        return await _search_endpoint(
            title, MOVIE, "Movie not found locally or on TVDB."
        )

    @fastapi_app.get("/search/series")
    async def search_series(title: str | None = Query(default=None)) -> JSONResponse:
        return await _search_endpoint(
            title, SERIES, "Series not found locally or on TVDB."
        )

    @fastapi_app.post("/tvdb/login")
    async def tvdb_login() -> dict[str, str]:
        api_key = _require_api_key()
        cache = get_session_cache(fastapi_app)
        try:
            token = await cache.get_token(api_key)
        except AuthenticationError as exc:
            logger.exception("TheTVDB login failed")
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"token": token}


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
