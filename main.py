from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

import admin_routes
import user_routes
from config import Settings
from database import create_client, ensure_indexes, get_db
from errors import ServiceUnavailable, register_exception_handlers
from logging_config import configure_logging

log = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, db: Optional[AsyncIOMotorDatabase] = None) -> FastAPI:
    """
    Build the API application.

    ``db`` may be supplied by the caller (tests pass an in-memory database);
    otherwise a motor client is created from ``settings``.
    """
    settings = settings or Settings()
    configure_logging(settings)

    client = None
    if db is None:
        client = create_client(settings)
        db = client[settings.DATABASE_NAME]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("startup", database=settings.DATABASE_NAME)
        try:
            await ensure_indexes(app.state.db)
        except PyMongoError as e:
            # Keep serving; requests will surface the store error themselves
            log.warning("ensure_indexes_failed", error=str(e))
        yield
        log.info("shutdown")
        if client is not None:
            client.close()

    app = FastAPI(title="Course Marketplace API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/")
    async def root():
        return {"ok": True, "service": settings.APP_NAME}

    @app.get("/test")
    async def test(db: AsyncIOMotorDatabase = Depends(get_db)):
        # Verify db connection on demand
        try:
            await db.command("ping")
        except PyMongoError as e:
            log.warning("database_unavailable", error=str(e))
            raise ServiceUnavailable()
        return {"status": "ok"}

    app.include_router(admin_routes.router)
    app.include_router(user_routes.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.HOST, port=app.state.settings.PORT)
