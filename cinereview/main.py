from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from cinereview import config
from cinereview.db import Database
from cinereview.errors import envelope, register_exception_handlers
from cinereview.logging_setup import configure_logging, log_requests
from cinereview.routes import auth, movies, reviews, users, watchlist

logger = logging.getLogger(__name__)


def create_app(database=None):
    """Build the API. ``database`` defaults to one built from the environment."""
    configure_logging(config.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.require_jwt_secret()
        db = database or Database.from_config()
        db.connect()
        app.state.database = db
        logger.info("CineReview API started (%s)", config.APP_ENV)
        try:
            yield
        finally:
            db.close()

    app = FastAPI(title="CineReview API", lifespan=lifespan)
    app.middleware("http")(log_requests)
    register_exception_handlers(app)

    for module in (auth, movies, reviews, users, watchlist):
        app.include_router(module.router)

    @app.get("/health")
    def health():
        db = getattr(app.state, "database", None)
        healthy = db is not None and db.ping()
        body = envelope(healthy, message="OK" if healthy else "Database unavailable",
                        data={"environment": config.APP_ENV})
        return JSONResponse(body, status_code=200 if healthy else 503)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("cinereview.main:app", host="0.0.0.0", port=8000)
