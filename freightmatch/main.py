import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from freightmatch.core.config import settings
from freightmatch.core.exceptions import register_exception_handlers
from freightmatch.core.structured_logging import configure_logging
from freightmatch.db.base import Base, SessionLocal, engine
import freightmatch.db.models  # noqa: F401  registers every table on Base.metadata
from freightmatch.api.routes import auth
from freightmatch.api.routes import admin as admin_router
from freightmatch.api.routes import chat as chat_router
from freightmatch.api.routes import cities as cities_router
from freightmatch.api.routes import coordinator as coordinator_router
from freightmatch.api.routes import empty_returns as empty_returns_router
from freightmatch.api.routes import notifications as notifications_router
from freightmatch.api.routes import offers as offers_router
from freightmatch.api.routes import ratings as ratings_router
from freightmatch.api.routes import reports as reports_router
from freightmatch.api.routes import requests as requests_router
from freightmatch.api.routes import stories as stories_router
from freightmatch.api.routes import transporter_references as references_router
from freightmatch.api.routes import upload as upload_router
from freightmatch.api.routes import users as users_router
from freightmatch.services.seed import seed_defaults

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="FreightMatch API", version=settings.VERSION)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.session_max_age_seconds,
    https_only=settings.cookie_secure,
    same_site="lax",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_defaults(db)
    finally:
        db.close()
    logger.info("FreightMatch API started (env=%s)", settings.ENV)


@app.get("/")
def root():
    return {"message": "FreightMatch API running"}


@app.get("/healthz")
def healthz():
    return {"status": "ok", "version": settings.VERSION}


app.include_router(auth.router, prefix="/api/auth")
app.include_router(users_router.router)
app.include_router(requests_router.router)
app.include_router(offers_router.router)
app.include_router(coordinator_router.router)
app.include_router(admin_router.router)
app.include_router(notifications_router.router)
app.include_router(chat_router.router)
app.include_router(chat_router.ws_router)
app.include_router(cities_router.router)
app.include_router(stories_router.router)
app.include_router(empty_returns_router.router)
app.include_router(reports_router.router)
app.include_router(ratings_router.router)
app.include_router(references_router.router)
app.include_router(upload_router.router)
