import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devevent.config import get_settings
from devevent.controllers.bookings import router as bookings_router
from devevent.controllers.events import router as events_router
from devevent.controllers.health import router as health_router
from devevent.errors import register_exception_handlers
from devevent.lifespan import lifespan
from devevent.middleware import HTTPLogMiddleware


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="DevEvent API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_origin_regex=settings.cors.origins_regex or None,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.debug.request:
        logging.getLogger("devevent.http").setLevel(logging.DEBUG)
        app.add_middleware(HTTPLogMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(events_router)
    app.include_router(bookings_router)
    return app


app = create_app()
