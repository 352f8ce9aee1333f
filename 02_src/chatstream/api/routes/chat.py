"""Chat streaming API routes."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from ...app import ChatService

NDJSON_MEDIA_TYPE = "application/x-ndjson"


class ChatRequest(BaseModel):
    """Request model for one chat turn."""

    message: str


def create_chat_router(chat_service: ChatService) -> APIRouter:
    """Create chat router."""
    router = APIRouter(tags=["chat"])

    @router.post("/chat")
    async def chat(request: ChatRequest) -> StreamingResponse:
        """Stream the events answering a message, one JSON record per line."""
        message = request.message.strip()
        if not message:
            raise HTTPException(status_code=400, detail="Invalid message")

        return StreamingResponse(
            chat_service.stream_turn(message),
            media_type=NDJSON_MEDIA_TYPE,
            headers={"Cache-Control": "no-cache"},
        )

    return router
