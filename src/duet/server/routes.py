"""HTTP routes of the generation backend.

POST /api/llm/generate  blocking generation, JSON in and out
POST /api/llm/stream    incremental generation as server-sent events
GET  /api/health        liveness
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from .. import __version__
from .service import GenerationService, parse_request

router = APIRouter(prefix="/api/llm", tags=["LLM"])
health_router = APIRouter(prefix="/api", tags=["Health"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def get_service(request: Request) -> GenerationService:
    return request.app.state.service


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/generate")
async def generate(
    http_request: Request,
    service: GenerationService = Depends(get_service),
) -> Any:
    """Generate one complete response.

    Invalid requests and missing credentials are turned into 400/500
    responses by the app's error handlers.
    """
    request = parse_request(await _json_body(http_request))
    service.registry.check_credentials(request.model)

    result = await service.generate(request)
    if not result.success:
        return JSONResponse(
            status_code=500,
            content={
                "error": result.error or "Failed to generate response",
                "content": result.content,
            },
        )
    return {"content": result.content, "success": True}


@router.post("/stream")
async def stream(
    http_request: Request,
    service: GenerationService = Depends(get_service),
) -> StreamingResponse:
    """Stream a response as ``data: {content, done}`` frames.

    Every error, including validation, is delivered as a single
    ``data: {error, done: true}`` frame on a 200 response.
    """
    payload = await _json_body(http_request)
    return StreamingResponse(
        service.stream_events(payload),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@health_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}
