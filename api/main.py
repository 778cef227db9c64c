# api/main.py
from dotenv import load_dotenv
import os

env = os.getenv("APP_ENV", "local")
if env == "local":
    load_dotenv(".env.local")
else:
    load_dotenv(".env")

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging
from database.db import init_db
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies.metadata import build_metadata_pipeline
from api.middleware.body_limit import BodySizeLimitMiddleware
from api.routers import (
    health,
    auth,
    users,
    documents,
    collections,
)
from services.document_service import UPLOAD_DIR

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = int(os.getenv("MAX_BODY_SIZE", str(50 * 1024 * 1024)))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting ScholarVault API, initializing DB")
    try:
        init_db()
    except Exception as e:
        logger.error(f"❌ Failed to initialize database: {e}", exc_info=True)
        raise
    app.state.metadata_pipeline = build_metadata_pipeline()
    yield
    logger.info("🛑 Shutting down ScholarVault API")


app = FastAPI(
    title="ScholarVault API",
    version="1.0.0",
    description="Backend API for managing papers, collections and PDF metadata.",
    lifespan=lifespan
)

# CORS Configuration
origins_str = os.getenv("ALLOWED_ORIGINS", "")
origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()] or ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials="*" not in origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(BodySizeLimitMiddleware(MAX_BODY_SIZE))

app.include_router(health.router)
app.include_router(auth.router, prefix="/api", tags=["Authentication"])
app.include_router(users.router, prefix="/api", tags=["Users"])
app.include_router(documents.router, prefix="/api", tags=["Documents"])
app.include_router(collections.router, prefix="/api", tags=["Collections"])

UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")
