from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.v1.personas import router as personas_router
from api.v1.runs import router as runs_router
from app.config import get_settings
from app.core.langsmith import configure_langsmith
from app.core.logging import configure_logging
from app.core.middleware import RunContextMiddleware
from browser.screenshots import URL_PREFIX, get_screenshot_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    from db.base import Base
    from db.session import engine
    import db.models  # noqa: F401

    configure_logging()
    configure_langsmith()
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Dryrun", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RunContextMiddleware)

    app.include_router(personas_router, prefix="/v1")
    app.include_router(runs_router, prefix="/v1")

    # StaticFiles checks the directory exists at mount time
    screenshots = get_screenshot_store()
    screenshots.ensure_directories()
    app.mount(URL_PREFIX, StaticFiles(directory=screenshots.base_path), name="screenshots")

    @app.get("/healthz")
    async def healthz():
        s = get_settings()
        return {
            "ok": True,
            "llm_model": s.LLM_MODEL,
            "llm_configured": bool(s.openai_api_key),
            "db_configured": bool(s.DATABASE_URL),
            "max_active_runs": s.max_active_runs,
        }

    return app


app = create_app()
