"""Main entry point for the Support Chat API."""
import asyncio
import logging
import time
from typing import Dict, Tuple, Type
from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from config import PORT, CORS_ORIGINS, HISTORY_CONTEXT_TURNS
from models.api import MessageRequest, MessageResponse, HistoryRequest, HistoryMessage, HistoryResponse
from services.conversation_store import ConversationStore, StorageError, create_conversation_store
from services.reply_generator import (
    ReplyGenerator,
    ReplyGenerationError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Support Chat",
    description="Customer support chat backend for an online store",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services (will be done on startup)
conversation_store: ConversationStore = None
reply_generator: ReplyGenerator = None

GENERIC_FAILURE = (
    500,
    "Sorry, I'm having trouble processing your request. Please try again later.",
    "Internal server error",
)

# Generation failure -> (status, user-facing message, short error label)
UPSTREAM_FAILURES: Dict[Type[ReplyGenerationError], Tuple[int, str, str]] = {
    UpstreamAuthError: (
        500,
        "Service configuration error. Please contact support.",
        "Invalid API configuration",
    ),
    UpstreamRateLimitError: (
        503,
        "Service is temporarily unavailable. Please try again in a moment.",
        "Rate limit exceeded",
    ),
    UpstreamTimeoutError: (
        504,
        "Request timed out. Please try again.",
        "Request timeout",
    ),
}


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global conversation_store, reply_generator

    logger.info("Initializing Support Chat services...")

    try:
        conversation_store = create_conversation_store()
        logger.info("Initialized ConversationStore")

        reply_generator = ReplyGenerator()
        logger.info("Initialized ReplyGenerator")

        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Support Chat API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "support-chat",
        "version": "1.0.0"
    }


async def _reply_and_record(session_id: str, message: str) -> str:
    """Read recent context, generate a reply and store the new turn."""
    history = await run_in_threadpool(
        conversation_store.recent_turns, session_id, HISTORY_CONTEXT_TURNS
    )
    reply = await reply_generator.generate(message, history)
    await run_in_threadpool(conversation_store.append_turn, session_id, message, reply)
    return reply


def _failure_response(status_code: int, msg: str, error: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"msg": msg, "error": error})


@app.post("/chat/message", response_model=MessageResponse)
async def message_endpoint(request: MessageRequest) -> MessageResponse:
    """
    Answer a customer message.

    Loads the session's most recent turns as context, generates a reply and
    records the new turn. Nothing is stored when generation fails.

    Args:
        request: MessageRequest with sessionId and message

    Returns:
        MessageResponse with the reply and the echoed sessionId

    Raises:
        HTTPException: With a generic message for any upstream or storage failure
    """
    start_time = time.time()
    session_id = request.session_id

    try:
        logger.info(f"Processing message for session {session_id}: {request.message[:100]}...")

        # Shielded so the turn is still recorded if the client disconnects
        reply = await asyncio.shield(_reply_and_record(session_id, request.message))

        total_latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Message processed successfully in {total_latency_ms}ms")
        return MessageResponse(reply=reply, session_id=session_id)

    except ReplyGenerationError as e:
        logger.error(
            f"Reply generation failed for session {session_id}: {e.error.code} {e.error.message}",
            extra={"fields": {"error_code": e.error.code, "error_details": e.error.details}}
        )
        status_code, msg, error = UPSTREAM_FAILURES.get(type(e), GENERIC_FAILURE)
        raise _failure_response(status_code, msg, error)
    except StorageError as e:
        logger.error(f"Storage failure during {e.operation} for session {session_id}: {e}", exc_info=True)
        raise _failure_response(*GENERIC_FAILURE)
    except Exception as e:
        logger.error(f"Unexpected error processing message: {e}", exc_info=True)
        raise _failure_response(*GENERIC_FAILURE)


@app.post("/chat/history", response_model=HistoryResponse)
async def history_endpoint(request: HistoryRequest) -> HistoryResponse:
    """Return the full transcript of a session, oldest first."""
    try:
        entries = await run_in_threadpool(conversation_store.full_history, request.session_id)
    except Exception as e:
        logger.error(f"Error loading history for session {request.session_id}: {e}", exc_info=True)
        raise _failure_response(500, "Internal Server Error", "Internal server error")

    return HistoryResponse(
        data=[HistoryMessage(sender=entry.sender, text=entry.text) for entry in entries]
    )


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Support Chat API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
