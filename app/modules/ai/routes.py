from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import StreamingResponse
from app.database.supabase_client import get_supabase
from app.modules.ai.schemas import (
    SuggestionsRequest, SuggestionsResponse, SearchRequest, SearchResponse,
    RecommendationRequest, RecommendationResponse
)
from app.modules.ai.service import AIService, get_chat_suggestions
from app.core.limiter import limiter
from app.config import settings
from supabase import Client
from typing import Dict, Any

router = APIRouter(prefix="/ai", tags=["ai"])


def get_ai_service(supabase: Client = Depends(get_supabase)) -> AIService:
    return AIService(supabase)


@router.post("/chat")
@limiter.limit(settings.ai_rate_limit)
async def chat(
    request: Request,
    body: Dict[str, Any] = Body(...),
    service: AIService = Depends(get_ai_service)
):
    """
    Customer support chat.
    Body: {"messages": [{"role": "user" | "assistant", "content": "..."}]}
    Streams the assistant reply as server-sent events, ending with "data: [DONE]".
    """
    events = await service.chat(body.get("messages"))
    return StreamingResponse(
        events,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"}
    )


@router.post("/chat/suggestions", response_model=SuggestionsResponse)
async def chat_suggestions(suggestions_data: SuggestionsRequest):
    """Quick-reply suggestions for the chat widget"""
    return SuggestionsResponse(suggestions=get_chat_suggestions(suggestions_data.messages))


@router.post("/search", response_model=SearchResponse)
@limiter.limit(settings.ai_rate_limit)
async def ai_search(
    request: Request,
    search_data: SearchRequest,
    service: AIService = Depends(get_ai_service)
):
    """Natural-language product search, e.g. "best rice for biryani" """
    return await service.search(search_data.query)


@router.post("/recommendations", response_model=RecommendationResponse)
@limiter.limit(settings.ai_rate_limit)
async def ai_recommendations(
    request: Request,
    recommendation_data: RecommendationRequest,
    service: AIService = Depends(get_ai_service)
):
    return await service.recommend(
        current_product_id=recommendation_data.current_product_id,
        category=recommendation_data.category
    )
