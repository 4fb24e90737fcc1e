# 📦 main.py

from fastapi import FastAPI
from prometheus_client import start_http_server
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
import structlog
import uvicorn

from api import handlers
from api.handlers import router as api_router
from utils.fetch_therapists import fetch_overrides, fetch_therapists

log = structlog.get_logger()

# ─────────────────────────────
# Settings
class Settings(BaseSettings):
    app_name: str = "Therapist Matching Service"
    version: str = handlers.VERSION
    host: str = "0.0.0.0"
    port: int = Field(8000, validation_alias=AliasChoices("PORT", "port"))
    prometheus_port: int = Field(0, validation_alias=AliasChoices("PROMETHEUS_PORT", "prometheus_port"))

settings = Settings()

# ─────────────────────────────
# API Setup
app = FastAPI(title=settings.app_name, version=settings.version)
app.include_router(api_router)

# ─────────────────────────────
# Startup event
@app.on_event("startup")
async def startup_event():
    handlers.THERAPISTS = await fetch_therapists()
    handlers.OVERRIDES = await fetch_overrides()
    log.info("Candidate pool loaded", therapists=len(handlers.THERAPISTS), overrides=len(handlers.OVERRIDES))

    if settings.prometheus_port:
        start_http_server(settings.prometheus_port)
        log.info("Prometheus exporter started", port=settings.prometheus_port)

# ─────────────────────────────
# Main entrypoint
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
    )
