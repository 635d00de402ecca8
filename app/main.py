import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import auth, billing, billing_webhook, clinics, integrations, system, users
from app.core.config import get_settings
from app.core.logging_config import setup_logging
from app.db.init_db import init_db
from app.db.migrate import run_migrations

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.run_migrations:
        run_migrations(settings.database_url)
    else:
        init_db()
    logger.info("UroTrack API started")
    yield


# ============================================
# FASTAPI APP INIT
# ============================================

app = FastAPI(title="UroTrack API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(clinics.router)
app.include_router(users.router)
app.include_router(billing.router)
app.include_router(billing_webhook.router)
app.include_router(integrations.router)
app.include_router(system.router)


@app.get("/")
def root():
    return {"status": "UroTrack API running"}
