import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import openai
from openai import AsyncOpenAI
from fastapi import HTTPException

from app.config import settings

logger = logging.getLogger(__name__)


def map_gateway_error(error: Exception) -> HTTPException:
    """Translate an upstream failure into the status the storefront reports"""
    if isinstance(error, openai.RateLimitError):
        return HTTPException(status_code=429, detail="Rate limit exceeded. Please try again later.")
    if isinstance(error, openai.APIStatusError) and error.status_code == 402:
        return HTTPException(status_code=402, detail="Service temporarily unavailable.")
    if isinstance(error, openai.APIStatusError):
        logger.error(f"AI gateway error: {error.status_code} {error.message}")
    else:
        logger.error(f"AI gateway error: {error}")
    return HTTPException(status_code=500, detail="AI service error")


class AIGateway:
    """Chat-completion client for the OpenAI-compatible AI gateway."""

    def __init__(
        self,
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        resolved_api_key = api_key or settings.ai_gateway_api_key
        if not resolved_api_key:
            raise HTTPException(status_code=500, detail="AI gateway API key is not configured")

        self.model_name = model_name or settings.ai_model
        self.client = AsyncOpenAI(
            base_url=base_url or settings.ai_gateway_url,
            api_key=resolved_api_key,
            timeout=settings.ai_timeout_seconds,
        )

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Single non-streamed completion; returns the reply text ("" when the model sends none)"""
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except Exception as e:
            raise map_gateway_error(e)

        if not getattr(response, "choices", None):
            logger.warning(f"Model {self.model_name} returned no choices")
            return ""
        return response.choices[0].message.content or ""

    async def stream_chat(self, messages: List[Dict[str, Any]]) -> AsyncIterator[str]:
        """
        Open a streamed completion and return an iterator of server-sent event lines.
        The request is sent before this returns, so upstream rejections (rate limit,
        billing) surface as HTTPException instead of a broken stream.
        """
        try:
            stream = await self.client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                stream=True,
            )
        except Exception as e:
            raise map_gateway_error(e)

        return self._relay(stream)

    async def _relay(self, stream) -> AsyncIterator[str]:
        try:
            async for chunk in stream:
                yield f"data: {chunk.model_dump_json(exclude_none=True)}\n\n"
        except Exception as e:
            logger.error(f"AI stream interrupted: {e}")
        yield "data: [DONE]\n\n"
