import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studynotes.config import settings
from studynotes.db import init_all_databases
from studynotes.services.scheduler import InvalidArgumentError, InvalidStateError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield


async def _invalid_argument(request: Request, exc: InvalidArgumentError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _invalid_state(request: Request, exc: InvalidStateError) -> JSONResponse:
    logger.error("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def create_app() -> FastAPI:
    application = FastAPI(
        title="Study Notes Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(InvalidArgumentError, _invalid_argument)
    application.add_exception_handler(InvalidStateError, _invalid_state)

    from studynotes.routers import flashcards, health, notes

    application.include_router(health.router, prefix="/api", tags=["health"])
    application.include_router(
        flashcards.router, prefix="/api/flashcards", tags=["flashcards"]
    )
    application.include_router(
        notes.router, prefix="/api/notes", tags=["notes"]
    )

    return application


app = create_app()
