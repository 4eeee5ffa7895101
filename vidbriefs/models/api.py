"""
Pydantic models for API request/response schemas.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .conversation import Message, SummaryOptions
from .enums import SummaryRoute, TranscriptSource


class VideoRequest(BaseModel):
    """Request model for loading a video into a new conversation."""

    url: str
    source: TranscriptSource = TranscriptSource.YOUTUBE

    model_config = ConfigDict(extra="forbid")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("URL must not be empty")
        return v.strip()


class VideoLoadedResponse(BaseModel):
    conversation_id: str
    message: str

    model_config = ConfigDict(frozen=True)


class AskRequest(VideoRequest):
    """Request model for a one-shot question about a video."""

    question: str = Field(min_length=1)
    options: Optional[SummaryOptions] = None


class AskResponse(BaseModel):
    """Answer to a one-shot question, with how it was produced."""

    conversation_id: str
    answer: str
    route: SummaryRoute
    word_count: int
    chunk_count: int
    failed_chunks: int

    model_config = ConfigDict(frozen=True)


class ChatRequest(BaseModel):
    """Request model for chat messages."""

    conversation_id: str
    message: str = Field(min_length=1)
    options: Optional[SummaryOptions] = None

    model_config = ConfigDict(extra="forbid")


class ChatResponse(BaseModel):
    """Response model for chat messages."""

    response: str

    model_config = ConfigDict(frozen=True)


class ConversationDetailResponse(BaseModel):
    """Response model for conversation details including messages."""

    id: str
    messages: List[Message]

    model_config = ConfigDict(from_attributes=True)


class SaveInsightRequest(BaseModel):
    conversation_id: str

    model_config = ConfigDict(extra="forbid")


class InsightSummaryResponse(BaseModel):
    """Response model for library list items."""

    id: str
    title: str
    body_snippet: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)


class InsightDetailResponse(BaseModel):
    id: str
    title: str
    body: str
    messages: List[Message]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TermsResponse(BaseModel):
    accepted: bool

    model_config = ConfigDict(frozen=True)


class RateLimitResponse(BaseModel):
    """Remaining allowance for the calling installation."""

    limit: int
    remaining: int
    window_seconds: int

    model_config = ConfigDict(frozen=True)
