# api/chat.py
"""
Chat API Endpoint
Conversational interface of the travel assistant:
- POST /api/chat              one chat turn (classify, search, answer)
- POST /api/chat/classify     classification only, no searches
- GET/DELETE /api/chat/{id}/context
- GET /api/chat/{id}/history
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from loguru import logger

from .. import __version__
from ..agents.chat_agent import ChatAgent, get_chat_agent
from ..llm.classifier import classify
from ..schemas.chat_schemas import ChatRequest, ChatResponse, ClassifyRequest, ClassifiedIntent


router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.get("")
async def chat_info():
    """Service description"""
    return {
        "name": "Travel Chat API",
        "version": __version__,
        "description": "Understands travel requests, asks for missing details and searches flights, hotels and destination info",
        "endpoints": {
            "POST /api/chat": "Send a message",
            "POST /api/chat/classify": "Classify a message without searching",
            "GET /api/chat/{chat_id}/context": "Remembered search details",
            "DELETE /api/chat/{chat_id}/context": "Forget search details",
            "GET /api/chat/{chat_id}/history": "Message history",
        },
    }


@router.post("", response_model=ChatResponse)
async def chat(request: ChatRequest, agent: ChatAgent = Depends(get_chat_agent)):
    """
    Main chat endpoint

    Example:
        POST /api/chat
        {"message": "Find flights from Delhi to Goa on 15 Jan", "conversationId": null}
    """
    if not request.message or not request.message.strip():
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    try:
        return await agent.process_message(
            request.message.strip(),
            history=request.history,
            conversation_id=request.conversationId,
        )
    except Exception as e:
        logger.exception(f"Chat error: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to process chat message"})


@router.post("/classify", response_model=ClassifiedIntent)
async def classify_message(request: ClassifyRequest):
    """Intent, params and missing params for a message"""
    return classify(request.message, history=request.history, context=request.context)


@router.get("/{chat_id}/context")
async def get_context(chat_id: str, agent: ChatAgent = Depends(get_chat_agent)):
    context = await agent.context_store.get_context(chat_id)
    if context is None:
        return JSONResponse(status_code=404, content={"error": "Context not found"})
    return {
        "chatId": chat_id,
        "context": context.to_dict(),
        "state": context.to_state().model_dump(mode="json"),
    }


@router.delete("/{chat_id}/context")
async def delete_context(chat_id: str, agent: ChatAgent = Depends(get_chat_agent)):
    deleted = await agent.context_store.delete_context(chat_id)
    return {"chatId": chat_id, "deleted": deleted}


@router.get("/{chat_id}/history")
async def get_history(
    chat_id: str,
    limit: int = Query(50, ge=1, le=200),
    agent: ChatAgent = Depends(get_chat_agent)
):
    messages = await agent.conversation_store.get_history(chat_id, limit=limit)
    return {"chatId": chat_id, "messages": messages, "count": len(messages)}
