from contextlib import asynccontextmanager
from fastapi import FastAPI

from lending_uploads.api.routers import files as files_router
from lending_uploads.api.routers import products as products_router
from lending_uploads.core.config import get_settings
from lending_uploads.core.logging_config import setup_logging
from lending_uploads.db.session import create_tables, get_engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    yield
    await get_engine().dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)
    app = FastAPI(
        debug=settings.debug,
        title="Lending Uploads API",
        lifespan=lifespan,
    )

    app.include_router(products_router.router)
    app.include_router(files_router.router)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    return app


app = create_app()
