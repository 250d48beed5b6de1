from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any

from app.modules.products.schemas import ProductResponse


class SuggestionsRequest(BaseModel):
    messages: List[Dict[str, Any]] = []


class SuggestionsResponse(BaseModel):
    suggestions: List[str]


class SearchRequest(BaseModel):
    query: str = Field(max_length=500)

    @field_validator("query")
    @classmethod
    def strip_query(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Search query is required")
        return value


class SearchResponse(BaseModel):
    products: List[ProductResponse]
    query: str
    matched_count: int


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # The web client posts camelCase
    current_product_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("current_product_id", "currentProductId")
    )
    category: Optional[str] = None


class RecommendationResponse(BaseModel):
    recommendations: List[ProductResponse]
