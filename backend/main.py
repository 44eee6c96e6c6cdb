"""
FeetFlight API - FastAPI Backend
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api import admin, albums, auth, notifications, sellers, users, wallet, webhook
from api.dependencies import get_neo4j
from config import close_neo4j_service, create_neo4j_service, get_settings, setup_logging
from middleware.errors import register_exception_handlers
from middleware.request_logging import request_logging_middleware
from services.neo4j_service import Neo4jService

settings = get_settings()
setup_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_neo4j_service()
    logger.info(f"🚀 FeetFlight API started ({settings.environment}) on port {settings.port}")
    yield
    await close_neo4j_service()
    logger.info("👋 FeetFlight API stopped")


app = FastAPI(
    title="FeetFlight API",
    description="Content-subscription marketplace backed by Neo4j",
    version="2.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=settings.credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_logging_middleware)

register_exception_handlers(app, is_production=settings.is_production)

# Root-level routes (signup, login, webhook) carry no prefix
app.include_router(auth.router)
app.include_router(webhook.router)
app.include_router(users.router)
app.include_router(albums.router)
app.include_router(sellers.router)
app.include_router(wallet.router)
app.include_router(notifications.router)
app.include_router(admin.router)

# Uploaded media
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/public", StaticFiles(directory=settings.upload_dir), name="public")


@app.get("/health")
async def health(neo4j: Neo4jService = Depends(get_neo4j)):
    neo4j_ok = await neo4j.verify()
    status = "ok" if neo4j_ok else "degraded"
    return JSONResponse(
        status_code=200 if neo4j_ok else 503,
        content={"status": status, "neo4j": neo4j_ok},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port, reload=settings.is_development)
