"""
Travel Chat Service - FastAPI Application
LLM Provider:
- If OPENAI_API_KEY is set: use OpenAI for classification and replies
- Otherwise: pattern classification, Ollama replies when OLLAMA_ENABLED
"""

import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from . import __version__
from .config import settings
from .api.chat import router as chat_router
from .agents.chat_agent import get_chat_agent
from .schemas.chat_schemas import HealthResponse, MAX_MESSAGE_LENGTH

# Configure logging
logger.remove()
logger.add(
    sys.stderr,
    level=settings.LOG_LEVEL.upper(),
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}"
)


def provider_status() -> dict:
    return {
        "openai": settings.use_openai,
        "ollama": settings.OLLAMA_ENABLED,
        "amadeus": settings.amadeus_configured,
        "tavily": bool(settings.TAVILY_API_KEY),
        "brave": bool(settings.BRAVE_SEARCH_API_KEY),
        "redis": settings.REDIS_ENABLED,
    }


# ============================================
# Application Lifespan
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("=" * 50)
    logger.info("Starting Travel Chat Service")
    logger.info("=" * 50)
    logger.info(f"Environment: {settings.API_ENV}")
    logger.info(f"Classifier mode: {settings.CLASSIFIER_MODE}")
    if settings.use_openai:
        logger.info(f"LLM Provider: OpenAI ({settings.OPENAI_MODEL})")
    elif settings.OLLAMA_ENABLED:
        logger.info(f"LLM Provider: Ollama ({settings.OLLAMA_MODEL} at {settings.OLLAMA_BASE_URL})")
    else:
        logger.warning("No LLM configured: pattern classification and canned replies only")

    for name, status in provider_status().items():
        logger.info(f"  {'✓' if status else '✗'} {name}")

    yield

    agent = get_chat_agent()
    await agent.context_store.close()
    await agent.conversation_store.close()
    logger.info("Travel Chat Service shutdown complete")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Travel Chat Service",
    description="Conversational travel assistant: intent classification, slot filling and flight/hotel/destination search.",
    version=__version__,
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


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors: 400 with a short message"""
    errors = exc.errors()
    logger.warning(f"Invalid request to {request.url.path}: {errors}")
    if any(e.get("type") == "string_too_long" and e.get("loc", ())[-1:] == ("message",) for e in errors):
        return JSONResponse(
            status_code=400,
            content={"error": f"Message is too long (max {MAX_MESSAGE_LENGTH} characters)"}
        )
    if request.url.path.rstrip("/") == "/api/chat":
        return JSONResponse(status_code=400, content={"error": "Message is required"})
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


app.include_router(chat_router)


# ============================================
# REST Endpoints
# ============================================

@app.get("/")
async def root():
    return {
        "service": "Travel Chat Service",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "endpoints": ["/health", "/api/chat", "/api/chat/classify"]
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status="healthy",
        version=__version__,
        providers=provider_status(),
        timestamp=datetime.now(timezone.utc).isoformat()
    )


# ============================================
# Main
# ============================================

def run():
    import uvicorn
    uvicorn.run(
        "tripchat.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_ENV == "development"
    )


if __name__ == "__main__":
    run()
