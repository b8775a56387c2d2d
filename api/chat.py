"""Chat relay routes: replies, server-sent event stream, image analysis, search."""

import json
import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse
from starlette.concurrency import iterate_in_threadpool

from api.base import success_response
from core.models.chat import ChatFrame, ChatRequest, ChatStreamRequest, OcrRequest
from core.services.chat_service import MAX_IMAGE_RESULTS, ChatService

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def _sse(frame: ChatFrame) -> str:
    return f"data: {json.dumps(frame.to_payload())}\n\n"


def create_chat_router(chat_service: ChatService) -> APIRouter:
    router = APIRouter(tags=["chat"])

    @router.post("")
    def chat(body: ChatRequest):
        reply = chat_service.respond(body.message, body.history)
        return success_response(reply.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/stream")
    async def chat_stream(request: Request, body: ChatStreamRequest):
        """Stream frames as server-sent events.

        Frames are produced on a worker thread. The relay stops as soon as
        the client disconnects, and closing the frame generator closes the
        upstream completion stream.
        """
        frames = chat_service.stream(body.message, body.history, body.image_data)

        async def event_source():
            try:
                async for frame in iterate_in_threadpool(frames):
                    if await request.is_disconnected():
                        logger.info("Client disconnected, abandoning chat stream")
                        break
                    yield _sse(frame)
            finally:
                frames.close()

        return StreamingResponse(
            event_source(),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @router.post("/ocr")
    def ocr(body: OcrRequest):
        text = chat_service.ocr(body.image_data, body.prompt)
        return success_response({"text": text, "success": True}).model_dump(mode="json")

    @router.get("/images")
    def images(q: str = Query(""), count: int = Query(MAX_IMAGE_RESULTS)):
        results = chat_service.search_images(q, count)
        return success_response(
            {"images": [r.model_dump(mode="json") for r in results]}
        ).model_dump(mode="json")

    @router.get("/links")
    def links(q: str = Query(""), count: int = Query(5)):
        results = chat_service.search_web(q, count)
        return success_response(
            {"links": [r.model_dump(mode="json") for r in results]}
        ).model_dump(mode="json")

    return router
