"""
API endpoints for video loading, questions, chat, and the insight library.
"""
from fastapi import APIRouter, Depends
from typing import List
from loguru import logger
import time

from vidbriefs.models.api import (
    AskRequest,
    AskResponse,
    ChatRequest,
    ChatResponse,
    ConversationDetailResponse,
    InsightDetailResponse,
    InsightSummaryResponse,
    RateLimitResponse,
    SaveInsightRequest,
    TermsResponse,
    VideoLoadedResponse,
    VideoRequest,
)
from vidbriefs.services.chat import ChatService
from vidbriefs.services.rate_limiter import RequestRateLimiter
from vidbriefs.repositories.insights import InsightRepository
from vidbriefs.repositories.terms import TermsRepository
from vidbriefs.api.dependencies import (
    get_chat_service,
    get_identity,
    get_insight_repository,
    get_rate_limiter,
    get_terms_repository,
    require_terms_accepted,
)
from vidbriefs.core.exceptions import NotFoundError
from vidbriefs.core.prompts import ConversationPrompts, PRESET_QUESTIONS


router = APIRouter()

SNIPPET_LENGTH = 200


# =============================================================================
# TERMS & PRESETS
# =============================================================================

@router.get("/terms", response_model=TermsResponse)
async def get_terms(terms: TermsRepository = Depends(get_terms_repository)):
    return TermsResponse(accepted=await terms.accepted())


@router.post("/terms", response_model=TermsResponse)
async def accept_terms(terms: TermsRepository = Depends(get_terms_repository)):
    """Records acceptance of the terms and conditions."""
    await terms.accept()
    logger.info("Terms accepted")
    return TermsResponse(accepted=True)


@router.get("/presets", response_model=List[str])
async def get_preset_questions():
    """Lists the preset questions offered for a video."""
    return list(PRESET_QUESTIONS)


# =============================================================================
# VIDEOS & QUESTIONS
# =============================================================================

@router.post(
    "/videos/load",
    response_model=VideoLoadedResponse,
    dependencies=[Depends(require_terms_accepted)],
)
async def load_video(
    payload: VideoRequest,
    chat_service: ChatService = Depends(get_chat_service),
    identity: str = Depends(get_identity),
):
    """
    Fetches a video's transcript and starts a conversation about it.

    Counts against the installation's request allowance.

    Args:
        payload: The video URL and its source.
        chat_service: The service handling the business logic.
        identity: The calling installation.

    Returns:
        VideoLoadedResponse: The new conversation id.
    """
    logger.info(f"Incoming load request for URL: {payload.url} from {identity}")
    conversation_id = await chat_service.load_video(identity, payload.url, payload.source)
    return VideoLoadedResponse(
        conversation_id=conversation_id,
        message=ConversationPrompts.VIDEO_LOADED,
    )


@router.post(
    "/insights/ask",
    response_model=AskResponse,
    dependencies=[Depends(require_terms_accepted)],
)
async def ask_about_video(
    payload: AskRequest,
    chat_service: ChatService = Depends(get_chat_service),
    identity: str = Depends(get_identity),
):
    """
    Answers a question about a video, summarizing long transcripts in chunks.

    Counts against the installation's request allowance.

    Args:
        payload: The video URL, its source, the question and customization.
        chat_service: The service handling the business logic.
        identity: The calling installation.

    Returns:
        AskResponse: The answer and how it was produced.
    """
    logger.info(f"Incoming question for URL: {payload.url} from {identity}")

    start_time = time.perf_counter()
    conversation_id, outcome = await chat_service.ask(
        identity,
        payload.url,
        payload.question,
        source=payload.source,
        options=payload.options,
    )
    duration = time.perf_counter() - start_time
    logger.info(f"Question answered via {outcome.route.value} in {duration:.2f}s")

    return AskResponse(conversation_id=conversation_id, **outcome.model_dump())


@router.post(
    "/chat",
    response_model=ChatResponse,
    dependencies=[Depends(require_terms_accepted)],
)
async def chat_about_video(
    payload: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Sends a message to the LLM within the context of a loaded video.

    Args:
        payload: The chat request containing conversation_id and message.
        chat_service: The service handling the business logic.

    Returns:
        ChatResponse: The AI-generated response.
    """
    logger.info(f"Incoming chat message for conversation {payload.conversation_id}")

    start_time = time.perf_counter()
    response_text = await chat_service.send_message(
        payload.conversation_id,
        payload.message,
        payload.options,
    )
    duration = time.perf_counter() - start_time
    logger.info(f"Chat message processed in {duration:.2f}s")
    return ChatResponse(response=response_text)


@router.post("/chat/new", status_code=204)
async def new_chat(
    chat_service: ChatService = Depends(get_chat_service),
    identity: str = Depends(get_identity),
):
    """Clears the installation's current conversation."""
    chat_service.new_chat(identity)
    return


# =============================================================================
# CONVERSATIONS
# =============================================================================

@router.get("/conversations/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation_detail(
    conversation_id: str,
    chat_service: ChatService = Depends(get_chat_service),
):
    """Retrieves a conversation with all of its messages."""
    conversation = chat_service.get_conversation(conversation_id)
    return ConversationDetailResponse(id=conversation.id, messages=conversation.messages)


@router.delete("/conversations/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: str,
    chat_service: ChatService = Depends(get_chat_service),
):
    logger.info(f"Deleting conversation {conversation_id}")
    await chat_service.delete_conversation(conversation_id)
    return


# =============================================================================
# INSIGHT LIBRARY
# =============================================================================

@router.get("/insights", response_model=List[InsightSummaryResponse])
async def list_insights(insights: InsightRepository = Depends(get_insight_repository)):
    """
    Retrieves the saved insight library.

    Returns:
        List[InsightSummaryResponse]: Saved insights with body snippets.
    """
    response = []
    for insight in await insights.list():
        snippet = insight.body
        if len(snippet) > SNIPPET_LENGTH:
            snippet = snippet[:SNIPPET_LENGTH] + "..."

        response.append(
            InsightSummaryResponse(
                id=insight.id,
                title=insight.title,
                body_snippet=snippet,
                created_at=insight.created_at,
                updated_at=insight.updated_at,
            )
        )

    return response


@router.post("/insights", response_model=InsightDetailResponse, status_code=201)
async def save_insight(
    payload: SaveInsightRequest,
    chat_service: ChatService = Depends(get_chat_service),
):
    """Saves a conversation to the library, titling it automatically."""
    insight = await chat_service.save_insight(payload.conversation_id)
    return InsightDetailResponse.model_validate(insight)


@router.delete("/insights", status_code=204)
async def clear_insights(insights: InsightRepository = Depends(get_insight_repository)):
    await insights.clear_all()
    return


@router.get("/insights/{insight_id}", response_model=InsightDetailResponse)
async def get_insight(
    insight_id: str,
    insights: InsightRepository = Depends(get_insight_repository),
):
    insight = await insights.get(insight_id)
    if insight is None:
        raise NotFoundError("Insight", insight_id)
    return InsightDetailResponse.model_validate(insight)


@router.delete("/insights/{insight_id}", status_code=204)
async def delete_insight(
    insight_id: str,
    insights: InsightRepository = Depends(get_insight_repository),
):
    if not await insights.delete(insight_id):
        raise NotFoundError("Insight", insight_id)
    return


@router.post("/insights/{insight_id}/restore", response_model=ConversationDetailResponse)
async def restore_insight(
    insight_id: str,
    chat_service: ChatService = Depends(get_chat_service),
    identity: str = Depends(get_identity),
):
    """Reloads a saved conversation and makes it the current one."""
    insight = await chat_service.restore_insight(insight_id, identity)
    return ConversationDetailResponse(id=insight.id, messages=insight.messages)


# =============================================================================
# RATE LIMIT
# =============================================================================

@router.get("/rate-limit", response_model=RateLimitResponse)
async def get_rate_limit(
    rate_limiter: RequestRateLimiter = Depends(get_rate_limiter),
    identity: str = Depends(get_identity),
):
    """Reports how many transcript requests the installation has left."""
    return RateLimitResponse(
        limit=rate_limiter.max_requests,
        remaining=await rate_limiter.remaining(identity),
        window_seconds=int(rate_limiter.window.total_seconds()),
    )
