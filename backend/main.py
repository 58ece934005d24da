import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

# Configure root logger to show INFO for our application modules
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
# Suppress noisy third-party loggers
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

from authgate.core.config import Settings, settings
from authgate.core.database import engine, Base
from authgate.core.errors import register_exception_handlers, UnexpectedErrorMiddleware
from authgate.core.origins import OriginGateMiddleware
from authgate.api import auth, health

# Import all models so Base.metadata knows about them
from authgate.models import account  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables checked/created")
    yield
    engine.dispose()


def create_app(config: Settings = settings) -> FastAPI:
    app = FastAPI(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        debug=config.DEBUG,
        lifespan=lifespan,
    )

    app.state.settings = config

    # Last added runs outermost: origin checks wrap the 500 fallback
    app.add_middleware(UnexpectedErrorMiddleware)
    app.add_middleware(OriginGateMiddleware, allowed_origins=config.allowed_origins)
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)

    logger.info(
        "Allowed origins: %s (cookie policy: %s)",
        ", ".join(config.allowed_origins) or "<none>",
        "production" if config.is_production else "per-request",
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, proxy_headers=True, forwarded_allow_ips="*")
