from .enums import (
    LLMRole,
    TranscriptSource,
    SummaryRoute,
    SummaryLength,
    SummaryTone,
    KeyPointPosition,
    KeyPointFormat,
    KeyPointDepth,
)
from .conversation import (
    Message,
    Conversation,
    Insight,
    KeyPointOptions,
    SummaryOptions,
    ChunkSummary,
    SummaryOutcome,
)
