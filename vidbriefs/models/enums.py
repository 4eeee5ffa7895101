"""
Enums for type-safe values across the application.
"""
from enum import Enum


class LLMRole(str, Enum):
    """Role of a conversation message (OpenAI/Gemini/Groq compatible)."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class TranscriptSource(str, Enum):
    """Platforms the transcript backend can extract from."""
    YOUTUBE = "youtube"
    TED_TALK = "ted_talk"


class SummaryRoute(str, Enum):
    """Strategy chosen by the summarization pipeline."""
    SINGLE_PASS = "single_pass"
    CHUNKED_PASS = "chunked_pass"


class SummaryLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class SummaryTone(str, Enum):
    """Writing styles offered for summaries."""
    NEUTRAL = "neutral"
    FORMAL = "formal"
    CASUAL = "casual"
    ACADEMIC = "academic"
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    CONVERSATIONAL = "conversational"
    TECHNICAL = "technical"
    SIMPLE = "simple"
    JOURNALISTIC = "journalistic"
    PERSUASIVE = "persuasive"
    ANALYTICAL = "analytical"
    CRITICAL = "critical"
    ENTHUSIASTIC = "enthusiastic"
    HUMOROUS = "humorous"
    INSPIRATIONAL = "inspirational"
    STORYTELLING = "storytelling"
    CONCISE = "concise"
    EMPATHETIC = "empathetic"
    SOCRATIC = "socratic"


class KeyPointPosition(str, Enum):
    START = "start"
    END = "end"


class KeyPointFormat(str, Enum):
    BULLETS = "bullets"
    NUMBERED = "numbered"
    PARAGRAPH = "paragraph"


class KeyPointDepth(str, Enum):
    BRIEF = "brief"
    DETAILED = "detailed"
