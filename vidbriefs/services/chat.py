"""
Chat service for orchestrating video loading, questions and conversation management.

This module ties the pieces of a session together:
- TranscriptService to fetch the video transcript
- SummarizationService to answer a question about a whole transcript
- ConversationStore for the persistent message histories
- InsightRepository for the saved library
- RequestRateLimiter to cap transcript fetches per installation
"""
import asyncio
from collections import defaultdict
from typing import Dict, Optional, Tuple

from loguru import logger

from vidbriefs.core.constants import InsightConfig, SummarizationConfig
from vidbriefs.core.exceptions import LLMError, NotFoundError
from vidbriefs.core.prompts import ConversationPrompts, TitlePrompts
from vidbriefs.core.providers.llm_provider import LLMProvider, LLMMessage
from vidbriefs.models import (
    Conversation,
    Insight,
    LLMRole,
    Message,
    SummaryOptions,
    SummaryOutcome,
    TranscriptSource,
)
from vidbriefs.repositories.conversation import ConversationStore
from vidbriefs.repositories.insights import InsightRepository
from vidbriefs.services.customization import with_customization
from vidbriefs.services.rate_limiter import RequestRateLimiter
from vidbriefs.services.summarization import SummarizationService
from vidbriefs.services.transcripts import TranscriptService


def render_transcript(messages: list[Message]) -> str:
    """Render non-system messages as `User:` / `AI:` lines."""
    lines = []
    for message in messages:
        if message.role == LLMRole.USER:
            lines.append(f"User: {message.content}")
        elif message.role == LLMRole.ASSISTANT:
            lines.append(f"AI: {message.content}")
    return "\n".join(lines)


class ChatService:
    """
    Service for managing video sessions and conversations.

    Each identity (an app installation) has at most one current
    conversation. Turns on the same conversation are serialized so a reply
    is always computed from, and appended to, the history it was asked on.
    """

    def __init__(
        self,
        transcript_service: TranscriptService,
        summarization_service: SummarizationService,
        conversation_store: ConversationStore,
        insight_repository: InsightRepository,
        rate_limiter: RequestRateLimiter,
        chat_llm_provider: LLMProvider,
        chat_model: Optional[str] = None,
        timeout: Optional[float] = None,
        deadline_seconds: Optional[float] = None,
    ):
        """
        Initialize the ChatService.

        Args:
            transcript_service: Service for transcript retrieval.
            summarization_service: Single/chunked pass pipeline.
            conversation_store: Store for conversation histories.
            insight_repository: Repository for the saved library.
            rate_limiter: Gate for transcript-fetching requests.
            chat_llm_provider: LLM provider for follow-up chat and titles.
            chat_model: Model override for follow-up chat.
            timeout: Per-call timeout for chat calls.
            deadline_seconds: Default overall deadline for `ask`, or None for no deadline.
        """
        self.transcript_service = transcript_service
        self.summarization_service = summarization_service
        self.conversation_store = conversation_store
        self.insight_repository = insight_repository
        self.rate_limiter = rate_limiter
        self.chat_llm_provider = chat_llm_provider
        self.chat_model = chat_model
        self.timeout = timeout
        self.deadline_seconds = deadline_seconds
        self._current: Dict[str, str] = {}
        self._turn_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # =========================================================================
    # SESSIONS
    # =========================================================================

    async def load_video(
        self,
        identity: str,
        url: str,
        source: TranscriptSource = TranscriptSource.YOUTUBE,
    ) -> str:
        """
        Fetch a transcript and start a conversation about it.

        Flow:
        1. Rate-limit gate for the identity
        2. Fetch the transcript
        3. Create a conversation with the transcript as a system message
        4. Make it the identity's current conversation

        Returns:
            str: The new conversation id.

        Raises:
            RateLimitError: If the identity has used up its allowance.
            BadRequestError: If the URL does not belong to the source.
            TranscriptFetchError: If the transcript could not be fetched.
        """
        logger.info(f"Loading {source.value} video for {identity}: {url}")
        await self.rate_limiter.check_and_record(identity)
        transcript = await self.transcript_service.fetch(url, source)

        conversation_id = await self.conversation_store.create()
        await self.conversation_store.append_system(
            conversation_id,
            ConversationPrompts.TRANSCRIPT_CONTEXT.format(transcript=transcript),
        )
        self._current[identity] = conversation_id
        logger.info(f"Conversation {conversation_id} ready for {identity}")
        return conversation_id

    async def ask(
        self,
        identity: str,
        url: str,
        question: str,
        source: TranscriptSource = TranscriptSource.YOUTUBE,
        options: Optional[SummaryOptions] = None,
        deadline_seconds: Optional[float] = None,
    ) -> Tuple[str, SummaryOutcome]:
        """
        Answer one question about a video in a fresh conversation.

        The conversation becomes the identity's current one only once the
        pipeline succeeds; on failure it is discarded.

        Returns:
            The new conversation id and the pipeline outcome.
        """
        logger.info(f"Question about {source.value} video from {identity}: {url}")
        await self.rate_limiter.check_and_record(identity)
        transcript = await self.transcript_service.fetch(url, source)

        if deadline_seconds is None:
            deadline_seconds = self.deadline_seconds

        conversation_id = await self.conversation_store.create()
        try:
            async with self._turn_locks[conversation_id]:
                outcome = await self.summarization_service.summarize(
                    conversation_id,
                    transcript,
                    question,
                    options=options,
                    deadline_seconds=deadline_seconds,
                )
        except Exception:
            logger.warning(f"Discarding conversation {conversation_id} after failed question")
            await self.conversation_store.clear(conversation_id)
            self._turn_locks.pop(conversation_id, None)
            raise

        self._current[identity] = conversation_id
        return conversation_id, outcome

    async def send_message(
        self,
        conversation_id: str,
        text: str,
        options: Optional[SummaryOptions] = None,
    ) -> str:
        """
        Send a follow-up message with the full history as context.

        The user message and the reply are appended together only after a
        successful reply.

        Raises:
            NotFoundError: If the conversation does not exist.
            LLMError: If the chat call fails; the history is left unchanged.
        """
        if not self.conversation_store.exists(conversation_id):
            raise NotFoundError("Conversation", conversation_id)

        async with self._turn_locks[conversation_id]:
            # Deleted while this turn was queued
            if not self.conversation_store.exists(conversation_id):
                raise NotFoundError("Conversation", conversation_id)

            user_message = LLMMessage(role=LLMRole.USER, content=text)
            history = self.conversation_store.get(conversation_id)
            messages = with_customization([*history, user_message], options)

            logger.debug(f"Calling LLM for conversation {conversation_id}")
            response = await self.chat_llm_provider.generate_text(
                messages=messages,
                temperature=SummarizationConfig.CHAT_TEMPERATURE,
                model=self.chat_model,
                timeout=self.timeout,
            )

            await self.conversation_store.append(
                conversation_id,
                user_message,
                LLMMessage(role=LLMRole.ASSISTANT, content=response.content),
            )
        return response.content

    def new_chat(self, identity: str) -> None:
        """Forget the identity's current conversation; its history stays stored."""
        previous = self._current.pop(identity, None)
        if previous:
            logger.debug(f"{identity} left conversation {previous}")

    def current_conversation(self, identity: str) -> Optional[str]:
        return self._current.get(identity)

    # =========================================================================
    # INSIGHT LIBRARY
    # =========================================================================

    async def save_insight(self, conversation_id: str) -> Insight:
        """
        Save a conversation to the library, keyed by the conversation id.

        Saving again updates the entry in place.

        Raises:
            NotFoundError: If the conversation does not exist.
        """
        if not self.conversation_store.exists(conversation_id):
            raise NotFoundError("Conversation", conversation_id)

        messages = self.conversation_store.get(conversation_id)
        body = render_transcript(messages)
        title = await self._generate_title(body)
        insight = await self.insight_repository.save(
            Insight(id=conversation_id, title=title, body=body, messages=messages)
        )
        logger.info(f"Saved insight {insight.id} ('{insight.title}')")
        return insight

    async def restore_insight(self, insight_id: str, identity: str) -> Insight:
        """
        Reload a saved conversation and make it the identity's current one.

        Raises:
            NotFoundError: If no insight has that id.
        """
        insight = await self.insight_repository.get(insight_id)
        if insight is None:
            raise NotFoundError("Insight", insight_id)

        async with self._turn_locks[insight.id]:
            await self.conversation_store.replace(insight.id, insight.messages)
        self._current[identity] = insight.id
        logger.info(f"Restored insight {insight.id} for {identity}")
        return insight

    async def _generate_title(self, body: str) -> str:
        if not body.strip():
            return InsightConfig.UNTITLED
        try:
            response = await self.chat_llm_provider.generate_text(
                messages=[
                    LLMMessage(
                        role=LLMRole.USER,
                        content=TitlePrompts.BRIEF_TITLE.format(excerpt=body[:2000]),
                    )
                ],
                temperature=SummarizationConfig.TITLE_TEMPERATURE,
                timeout=self.timeout,
            )
        except LLMError as e:
            logger.warning(f"Title generation failed, using default: {e.title}")
            return InsightConfig.UNTITLED

        title = response.content.strip().strip('"').strip()
        return title[: InsightConfig.MAX_TITLE_LENGTH] or InsightConfig.UNTITLED

    # =========================================================================
    # CONVERSATION MANAGEMENT
    # =========================================================================

    def get_conversation(self, conversation_id: str) -> Conversation:
        """Retrieve a conversation with its full history."""
        if not self.conversation_store.exists(conversation_id):
            logger.warning(f"Conversation {conversation_id} not found")
            raise NotFoundError("Conversation", conversation_id)
        return Conversation(
            id=conversation_id,
            messages=self.conversation_store.get(conversation_id),
        )

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation and drop it as anyone's current conversation."""
        async with self._turn_locks[conversation_id]:
            removed = await self.conversation_store.clear(conversation_id)
        self._turn_locks.pop(conversation_id, None)
        if not removed:
            logger.warning(f"Conversation {conversation_id} not found for deletion")
            raise NotFoundError("Conversation", conversation_id)

        for identity, current in list(self._current.items()):
            if current == conversation_id:
                del self._current[identity]
        logger.info(f"Conversation {conversation_id} deleted")
