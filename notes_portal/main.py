from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from notes_portal.core.config import Settings, get_settings
from notes_portal.core.deps import close_course_api_client
from notes_portal.core.logging import setup_logging
from notes_portal.routers import system, meta, selector, upload, courses


def _cors_origins(settings: Settings) -> List[str]:
    """
    CORS_ORIGINS accepte une liste séparée par des virgules.
    """
    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    return origins or ["*"]  # fallback si mal configuré


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # le client HTTP partagé garde un pool de connexions ouvert
    close_course_api_client()


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Portail de notes de cours : sélection année/filière/matière/unité, quiz et upload",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(system.router)
    app.include_router(meta.router)
    app.include_router(selector.router)
    app.include_router(upload.router)
    app.include_router(courses.router)

    # Redirect root → docs
    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/docs")

    return app


app = create_app()
