from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notifyhub.infrastructure.database import engine, initialize_database
from notifyhub.infrastructure.notifications import connection_registry
from notifyhub.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database and realtime registry, and release them on shutdown."""

    initialize_database()
    connection_registry.start()
    try:
        yield
    finally:
        await connection_registry.stop()
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="notifyhub", lifespan=lifespan)

    # The portal front-end polls from its own origin during development.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
