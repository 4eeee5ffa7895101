from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    KeyPointDepth,
    KeyPointFormat,
    KeyPointPosition,
    LLMRole,
    SummaryLength,
    SummaryRoute,
    SummaryTone,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Conversation ---

class Message(BaseModel):
    """A single role-tagged message. Immutable once created."""
    role: LLMRole
    content: str

    model_config = ConfigDict(frozen=True)


class Conversation(BaseModel):
    id: str
    messages: List[Message] = Field(default_factory=list)


# --- Saved library entries ---

class Insight(BaseModel):
    """Durable snapshot of a conversation shown in the library."""
    id: str
    title: str
    body: str
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Summary customization ---

class KeyPointOptions(BaseModel):
    enabled: bool = False
    position: KeyPointPosition = KeyPointPosition.END
    format: KeyPointFormat = KeyPointFormat.BULLETS
    depth: KeyPointDepth = KeyPointDepth.BRIEF
    theme: Optional[str] = None
    prefix: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class SummaryOptions(BaseModel):
    """Per-request customization translated into extra system instructions."""
    length: SummaryLength = SummaryLength.MEDIUM
    tone: SummaryTone = SummaryTone.NEUTRAL
    key_points: KeyPointOptions = Field(default_factory=KeyPointOptions)

    model_config = ConfigDict(frozen=True)


# --- Pipeline results ---

class ChunkSummary(BaseModel):
    """Extract produced for one transcript chunk, tagged with its position."""
    index: int
    content: str

    model_config = ConfigDict(frozen=True)


class SummaryOutcome(BaseModel):
    answer: str
    route: SummaryRoute
    word_count: int
    chunk_count: int = 1
    failed_chunks: int = 0

    model_config = ConfigDict(frozen=True)
