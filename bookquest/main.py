import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles

from .config import settings
from .database import Database
from .errors import register_error_handlers
from .routers import auth, books, google_books, index, names, users

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database_url: Optional[str] = None) -> FastAPI:
    if not settings.SECRET_KEY:
        raise ValueError("SECRET_KEY is not set in .env file")

    database = Database(database_url or settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        database.close()

    app = FastAPI(title="BookQuest", lifespan=lifespan)
    app.state.database = database
    register_error_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    # Include Routers
    app.include_router(index.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(names.author_router)
    app.include_router(names.genre_router)
    app.include_router(books.router)
    app.include_router(google_books.router)

    # Uploaded book covers
    app.mount(
        settings.MEDIA_URL,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="media",
    )
    return app


app = create_app()

if __name__ == "__main__":
    logger.info("Starting server at http://127.0.0.1:%s", settings.PORT)
    uvicorn.run(app, host="127.0.0.1", port=settings.PORT)
