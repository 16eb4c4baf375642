import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
from src.adapter.repositories.memory import MemoryStore
from src.adapter.services.memory_unit_of_work import MemoryUnitOfWork
from src.app.services.expiry_sweeper import ExpirySweeper
from src.app.services.session_settings import SessionSettings
from src.app.services.token_codec import TokenCodec

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


def _build_sweeper(app: FastAPI, settings: SessionSettings) -> ExpirySweeper:
    memory_store = getattr(app.state, "memory_store", None)
    if memory_store is not None:

        @asynccontextmanager
        async def memory_unit_of_work():
            yield MemoryUnitOfWork(memory_store)

        return ExpirySweeper(memory_unit_of_work, settings)

    from src.depends import sql_unit_of_work

    return ExpirySweeper(sql_unit_of_work, settings)


def create_app(ApplicationConfig) -> FastAPI:
    logging.basicConfig(level=ApplicationConfig.LOG_LEVEL)
    settings = SessionSettings.from_config(ApplicationConfig)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = None
        if ApplicationConfig.SWEEPER_ENABLED:
            sweeper = _build_sweeper(app, settings)
            sweeper.start()
        yield
        if sweeper is not None:
            await sweeper.stop()

    app = FastAPI(title="Session Lifecycle API", version="0.1.0", lifespan=lifespan)

    app.state.session_settings = settings
    app.state.token_codec = TokenCodec.from_settings(settings)
    if ApplicationConfig.STORE_BACKEND == "memory":
        app.state.memory_store = MemoryStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import auth, health_check, sessions

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(sessions.router, tags=["Sessions"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
