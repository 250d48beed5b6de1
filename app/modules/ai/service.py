import json
import re
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from supabase import Client
from fastapi import HTTPException

from app.modules.ai.gateway import AIGateway
from app.modules.ai import prompts
from app.modules.ai.schemas import SearchResponse, RecommendationResponse
from app.modules.products.service import ProductService

logger = logging.getLogger(__name__)

CHAT_ROLES = ("user", "assistant")
MAX_MESSAGE_LENGTH = 2000
MAX_MESSAGES = 50
MAX_RECOMMENDATIONS = 4

INITIAL_SUGGESTIONS = [
    "What products do you sell?",
    "Tell me about Basmati Rice",
    "What are the prices?",
    "How to place a bulk order?",
    "Do you have cattle feed?",
]

# (keywords, suggestions), checked in order against the last few messages
CONTEXTUAL_SUGGESTIONS = [
    (("rice", "basmati", "sona"), [
        "Which rice is best for biryani?",
        "What's the difference between Basmati and Sona Masoori?",
        "Do you offer bulk discounts on rice?",
    ]),
    (("price", "cost", "₹"), [
        "What's the minimum order quantity?",
        "Do you offer wholesale prices?",
        "Any discounts for regular customers?",
    ]),
    (("order", "delivery", "track"), [
        "How can I track my order?",
        "What are the delivery options?",
        "Can I cancel my order?",
    ]),
    (("cattle", "feed", "kapila"), [
        "What's in the cattle feed?",
        "How much cattle feed should I order?",
        "Is it suitable for cows?",
    ]),
    (("product", "atta", "chokar"), [
        "Tell me about wheat atta",
        "What is Chokar used for?",
        "Do you have organic products?",
    ]),
]

DEFAULT_SUGGESTIONS = [
    "Tell me more about your products",
    "How do I contact you?",
    "What are your best sellers?",
]

_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


def validate_chat_messages(messages: Any) -> List[Dict[str, str]]:
    """Check a chat history, raising 400 with the first problem found"""
    if not isinstance(messages, list):
        raise HTTPException(status_code=400, detail="Invalid messages format")

    for msg in messages:
        if not isinstance(msg, dict):
            raise HTTPException(status_code=400, detail="Invalid message structure")
        role, content = msg.get("role"), msg.get("content")
        if not role or not isinstance(role, str) or not content or not isinstance(content, str):
            raise HTTPException(status_code=400, detail="Invalid message structure")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise HTTPException(status_code=400, detail=f"Message too long (max {MAX_MESSAGE_LENGTH} characters)")
        if role not in CHAT_ROLES:
            raise HTTPException(status_code=400, detail="Invalid message role")

    if len(messages) > MAX_MESSAGES:
        raise HTTPException(status_code=400, detail="Too many messages in conversation")

    return [{"role": msg["role"], "content": msg["content"]} for msg in messages]


def extract_product_ids(text: Optional[str]) -> List[str]:
    """Product ids from the first [...] span of a model reply; anything unparseable yields []"""
    match = _JSON_ARRAY.search(text or "")
    if not match:
        return []
    try:
        parsed = json.loads(match.group(0))
    except (json.JSONDecodeError, ValueError):
        logger.error(f"Failed to parse AI response: {text}")
        return []
    if not isinstance(parsed, list):
        return []
    return [str(item) for item in parsed if isinstance(item, (str, int)) and not isinstance(item, bool)]


def get_chat_suggestions(messages: List[Dict[str, Any]]) -> List[str]:
    """Follow-up questions based on keywords in the last three messages"""
    if not messages:
        return INITIAL_SUGGESTIONS
    recent = " ".join(str(m.get("content") or "").lower() for m in messages[-3:])
    for keywords, suggestions in CONTEXTUAL_SUGGESTIONS:
        if any(keyword in recent for keyword in keywords):
            return suggestions
    return DEFAULT_SUGGESTIONS


class AIService:
    def __init__(self, supabase: Client, gateway: Optional[AIGateway] = None):
        self.supabase = supabase
        self.products = ProductService(supabase)
        self._gateway = gateway

    @property
    def gateway(self) -> AIGateway:
        if self._gateway is None:
            self._gateway = AIGateway()
        return self._gateway

    async def chat(self, messages: Any) -> AsyncIterator[str]:
        """Validate the conversation and open a streamed reply with the store's system prompt first"""
        history = validate_chat_messages(messages)
        logger.info(f"Processing chat request with {len(history)} messages")
        return await self.gateway.stream_chat(
            [{"role": "system", "content": prompts.chat_system_prompt()}] + history
        )

    async def search(self, query: str) -> SearchResponse:
        """Natural-language product search; results keep catalog order"""
        gateway = self.gateway
        products = self.products.list_all_active()
        logger.info(f"Processing AI search for: {query}")

        reply = await gateway.complete(prompts.search_system_prompt(products), query)
        matched_ids = set(extract_product_ids(reply))
        matched = [p for p in products if p.id in matched_ids]

        logger.info(f"Matched products: {len(matched)}")
        return SearchResponse(products=matched, query=query, matched_count=len(matched))

    async def recommend(self, current_product_id: Optional[str] = None, category: Optional[str] = None) -> RecommendationResponse:
        """Up to four products to show next to the one being viewed (never that product itself)"""
        gateway = self.gateway
        products = self.products.list_all_active()
        current = next((p for p in products if p.id == current_product_id), None)
        logger.info(f"Getting recommendations for: {current.name if current else category}")

        reply = await gateway.complete(
            prompts.recommendation_system_prompt(products),
            prompts.recommendation_user_prompt(current, category)
        )
        recommended_ids = set(extract_product_ids(reply))
        recommended = [
            p for p in products
            if p.id in recommended_ids and p.id != current_product_id
        ][:MAX_RECOMMENDATIONS]

        logger.info(f"Recommended products: {len(recommended)}")
        return RecommendationResponse(recommendations=recommended)
