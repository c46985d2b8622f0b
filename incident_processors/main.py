"""
FastAPI application receiving bus messages for the incident processors.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from incident_processors.config import settings
from incident_processors.core.exceptions import StartupError
from incident_processors.core.logging import configure_logging, get_logger
from incident_processors.processors import EmailProcessor, IncOrgProcessor
from incident_processors.routers.messages import router as messages_router

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging(settings.log_level, json_output=settings.log_json)
    log.info("application_starting")

    incorg_processor = IncOrgProcessor()
    try:
        incorg_processor.start()
    except StartupError as e:
        log.error("startup_failed", error=str(e))
        raise SystemExit(1)

    app.state.incorg_processor = incorg_processor
    app.state.email_processor = EmailProcessor()

    yield

    incorg_processor.close()
    log.info("application_stopped")


app = FastAPI(
    title="Incident Processors",
    description="Email dispatch and incident-org room provisioning",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(messages_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/stats")
async def get_stats(request: Request):
    """Organization cache and room configuration summary."""
    processor: IncOrgProcessor = request.app.state.incorg_processor
    return {
        "organizations_cached": len(processor.org_cache),
        "room_templates": len(processor.provisioner.room_config.rooms),
    }


# Run with: uvicorn incident_processors.main:app --host 0.0.0.0 --port 8001
