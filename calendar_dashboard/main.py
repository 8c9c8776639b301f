import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from calendar_dashboard.cache import EventCache
from calendar_dashboard.config import Settings, settings as default_settings
from calendar_dashboard.google_api import GoogleClient
from calendar_dashboard.middleware import register_middleware
from calendar_dashboard.routers.auth import router as auth_router
from calendar_dashboard.routers.events import router as events_router
from calendar_dashboard.store import UserStore

log = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    store: UserStore | None = None,
    cache: EventCache | None = None,
    google: GoogleClient | None = None,
) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(title="Google Calendar Event Dashboard API")

    if store is None:
        store = UserStore(settings.USER_STORE_PATH)
    store.init()

    app.state.settings = settings
    app.state.store = store
    app.state.cache = cache if cache is not None else EventCache()
    app.state.google = google if google is not None else GoogleClient(settings)

    register_middleware(
        app,
        rate_limit_max=settings.RATE_LIMIT_MAX_REQUESTS,
        rate_limit_window=settings.RATE_LIMIT_WINDOW_SECONDS,
    )

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Google Calendar Event Dashboard API"

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(auth_router)
    app.include_router(events_router)
    return app


logging.basicConfig(
    level=default_settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


def serve() -> None:
    import uvicorn

    log.info("Server running on port %s", default_settings.PORT)
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    serve()
