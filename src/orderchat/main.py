import logging
import uuid
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .agent import OrderChatAgentService, close_agent_service, get_agent_service
from .models import ChatRequest, ChatResponse
from .settings import get_settings

PLACEHOLDER_API_KEYS = {"", "your-openai-api-key-here"}


def setup_server_logging(log_dir: Path, level: str = "INFO") -> logging.Logger:
    """Configure the package logger and return the server logger."""
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger("orderchat")
    root.setLevel(level)
    if not root.handlers:
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

        ch = logging.StreamHandler()
        ch.setFormatter(fmt)
        root.addHandler(ch)

        fh = RotatingFileHandler(
            log_dir / "server.log", maxBytes=5_000_000, backupCount=3
        )
        fh.setFormatter(fmt)
        root.addHandler(fh)

    return logging.getLogger("orderchat.server")


def _cors_origins_list(origins: str) -> list[str]:
    """Parse CORS_ORIGINS into a list."""
    if not origins or origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in origins.split(",") if o.strip()]


def validate_api_key(api_key: str | None) -> bool:
    """Log loudly when no usable OpenAI key is configured."""
    if api_key is None or api_key.strip() in PLACEHOLDER_API_KEYS:
        LOGGER.error(
            "OpenAI API key is not configured; set OPENAI_API_KEY. "
            "Chat turns will fail until it is set."
        )
        return False
    LOGGER.info("OpenAI API key configured")
    return True


settings = get_settings()
LOGGER = setup_server_logging(settings.log_dir, settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration and warm the tool catalog; close clients on shutdown."""
    validate_api_key(settings.openai_api_key)

    LOGGER.info("Loading tool catalog at startup...")
    try:
        tools = await get_agent_service().catalog.get_tools()
        LOGGER.info("Tool catalog loaded: %d tools", len(tools))
    except Exception as e:
        LOGGER.exception("Unexpected error loading tool catalog: %s", e)

    yield

    LOGGER.info("Shutting down...")
    await close_agent_service()


app = FastAPI(
    title="Order Chat API",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict[str, Any]:
    """Health check for load balancers and monitoring."""
    return {"status": "ok"}


@app.post("/api/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    service: OrderChatAgentService = Depends(get_agent_service),
):
    """Run one chat turn.

    Expected Input (JSON):
        {
            "message": str - user query text (required, non-blank),
            "session_id": str - optional; a new id is generated when missing
        }

    Response Format:
        {"response": str, "session_id": str, "functions_called": [...]}
        On an internal error the body carries the apology message and status 500.
    """
    session_id = request.session_id or str(uuid.uuid4())
    LOGGER.info("Chat request received: session_id=%s", session_id)
    try:
        result = await service.chat(session_id, request.message)
    except Exception as e:
        LOGGER.exception("Error processing chat request: %s", e)
        body = ChatResponse(
            response=settings.apology_message,
            session_id=request.session_id,
            functions_called=[],
        )
        return JSONResponse(status_code=500, content=body.model_dump())

    LOGGER.info(
        "Chat response: session_id=%s functions_called=%s",
        session_id,
        [call.function_name for call in result.functions_called],
    )
    return ChatResponse.from_turn(result)


@app.get("/api/chat/health", response_class=PlainTextResponse)
async def chat_health() -> str:
    return "Chat API is running"


@app.get("/api/chat/sessions")
async def session_count(
    service: OrderChatAgentService = Depends(get_agent_service),
) -> dict[str, Any]:
    return {"active_sessions": service.store.get_active_session_count()}


@app.get("/api/chat/sessions/{session_id}")
async def session_info(
    session_id: str,
    service: OrderChatAgentService = Depends(get_agent_service),
) -> dict[str, Any]:
    return {
        "session_id": session_id,
        "exists": service.store.has_session(session_id),
        "message_count": service.store.get_message_count(session_id),
    }


@app.delete("/api/chat/sessions/{session_id}")
async def clear_session(
    session_id: str,
    service: OrderChatAgentService = Depends(get_agent_service),
) -> dict[str, Any]:
    service.store.clear_session(session_id)
    return {"session_id": session_id, "cleared": True}


@app.delete("/api/chat/sessions")
async def clear_all_sessions(
    service: OrderChatAgentService = Depends(get_agent_service),
) -> dict[str, Any]:
    service.store.clear_all()
    return {"cleared": True}
