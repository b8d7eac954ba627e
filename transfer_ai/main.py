"""
Transfer Concierge Service - FastAPI Application
LLM Provider:
- If OPENAI_API_KEY is set: extraction, narratives and transcription use OpenAI
- If not: chat turns apologise and narratives fall back to templates
"""

from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import settings, configure_logging
from .api.chat import router as chat_router
from .api.transfers import router as transfers_router
from .api.audio import router as audio_router
from .interfaces.conversation_store import chat_session_store
from .interfaces.session_store import draft_store
from .interfaces.search_client import search_client

SERVICE_NAME = "transfer-concierge"
VERSION = "1.0.0"


# ============================================
# Application Lifespan
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    configure_logging()
    logger.info("=" * 50)
    logger.info("Starting Transfer Concierge Service")
    logger.info("=" * 50)
    logger.info(f"Environment: {settings.API_ENV}")
    logger.info(f"Service area: {settings.service_area}")
    logger.info(f"LLM: {'OpenAI ' + settings.OPENAI_MODEL if settings.use_openai else 'not configured'}")
    logger.info(f"Rates proxy: {settings.RATES_PROXY_URL}")

    components = {
        "llm": settings.use_openai,
        "search": search_client.configured,
        "redis": bool(settings.REDIS_URL),
    }
    ready = sum(1 for v in components.values() if v)
    logger.info(f"Components ready: {ready}/{len(components)}")
    for name, status in components.items():
        logger.info(f"  {'✓' if status else '✗'} {name}")

    yield

    await chat_session_store.close()
    logger.info("Transfer Concierge shutdown complete")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Transfer Concierge Service",
    description="Conversational airport and city transfer search with supplier ratings and promotions.",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)
app.include_router(transfers_router)
app.include_router(audio_router)


# ============================================
# REST Endpoints
# ============================================

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "running",
        "docs": "/docs",
        "endpoints": [
            "/health",
            "/api/process-message",
            "/api/analyze-transfers",
            "/api/transcribe-audio",
            "/api/chat-history"
        ]
    }


@app.get("/health")
async def health_check():
    """Service and collaborator status"""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "components": {
            "llm": f"openai ({settings.OPENAI_MODEL})" if settings.use_openai else "unavailable",
            "search": "ready" if search_client.configured else "unavailable",
            "rates_proxy": settings.RATES_PROXY_URL,
            "draft_store": "redis" if draft_store.redis_client else "memory",
            "chat_store": "redis" if chat_session_store.redis_client else "memory",
        },
        "timestamp": datetime.now().isoformat()
    }


# ============================================
# Main
# ============================================

def run():
    uvicorn.run(
        "transfer_ai.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_ENV == "development"
    )


if __name__ == "__main__":
    run()
