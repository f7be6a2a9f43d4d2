"""FastAPI application entry point."""

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before importing runtime config/services.
load_dotenv()

import logging

from .config import settings
from .logging_config import setup_logging

setup_logging(settings.logs_dir, settings.log_level)

from .routers import chat, conversations, personas

logger = logging.getLogger(__name__)

app = FastAPI(
    title="The Council API",
    description="Advisor and synthesis streams for sequential Brain Trust sessions",
    version="1.0.0",
)

# Expose the conversation headers so browser clients can thread advisor calls.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Conversation-Id", "X-User-Message-Id"],
)

# Register routers
app.include_router(chat.router)
app.include_router(personas.router)
app.include_router(conversations.router)

logger.info("=" * 80)
logger.info("FastAPI Application Started")
logger.info("CORS Origins: %s", settings.cors_origins)
logger.info("Synthesis model: %s", settings.synthesis_model_id)
logger.info("=" * 80)


@app.on_event("startup")
async def startup_event():
    """Bootstrap the local persona configuration on startup."""
    logger.info("=== Application startup initialization ===")

    from .services.persona_service import PersonaService

    service = PersonaService(settings.advisors_config_path)
    personas = await service.get_personas()
    logger.info("Loaded %s advisor persona(s) from %s", len(personas), service.config_path)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "The Council API",
        "docs": "/docs",
        "health": "/api/health",
    }
