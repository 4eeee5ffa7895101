"""
Single-pass and chunked (map-reduce) summarization of a video transcript.

This module provides the SummarizationService class that answers a user's
question about a transcript. It selects a strategy from the transcript's
word count:

1. Single Pass: the transcript and question go into the conversation
   history and one LLM call answers with the full history as context.
2. Chunked Pass: the transcript is split into word-bounded chunks, every
   chunk is summarized concurrently against the question, and one final
   reduce call synthesizes the per-chunk extracts into a single answer.
"""
import asyncio
from typing import Optional

from loguru import logger

from vidbriefs.core.constants import SummarizationConfig
from vidbriefs.core.exceptions import (
    LLMError,
    LLMTimeoutError,
    ReduceFailureError,
    RoutingError,
    TotalFailureError,
)
from vidbriefs.core.prompts import SummarizationPrompts
from vidbriefs.core.providers.llm_provider import LLMProvider, LLMMessage
from vidbriefs.models import (
    ChunkSummary,
    LLMRole,
    SummaryOptions,
    SummaryOutcome,
    SummaryRoute,
)
from vidbriefs.repositories.conversation import ConversationStore
from vidbriefs.services.chunking import TranscriptChunker, count_words
from vidbriefs.services.customization import with_customization


class SummarizationService:
    """
    Adaptive summarization for video transcripts.

    Routing:
    - fewer than `small_threshold_words` words: **Single Pass**
    - otherwise, more than `chunk_threshold_words` words: **Chunked Pass**
    - otherwise: RoutingError (only reachable when small <= chunk)

    Failure semantics:
    - Single pass and reduce failures are fatal to the request.
    - A failed chunk is logged and left out of the reduce input; only when
      every chunk fails does the request fail with TotalFailureError.

    The conversation history is only mutated after a successful answer.
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        conversation_store: ConversationStore,
        chunker: Optional[TranscriptChunker] = None,
        small_threshold_words: int = SummarizationConfig.DEFAULT_SMALL_THRESHOLD_WORDS,
        chunk_threshold_words: int = SummarizationConfig.DEFAULT_CHUNK_THRESHOLD_WORDS,
        concurrency_limit: int = SummarizationConfig.DEFAULT_CONCURRENCY_LIMIT,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the summarization service.

        Args:
            llm_provider: LLM provider for text generation.
            conversation_store: Store holding the conversation histories.
            chunker: Chunker for the chunked pass (default 80,000 words per chunk).
            small_threshold_words: Below this, the single pass is used.
            chunk_threshold_words: Above this (and not small), the chunked pass is used.
            concurrency_limit: Maximum chunk calls in flight at once.
            model: Model override passed to every call.
            timeout: Per-call timeout passed to every call.
        """
        self.llm_provider = llm_provider
        self.conversation_store = conversation_store
        self.chunker = chunker or TranscriptChunker()
        self.small_threshold_words = small_threshold_words
        self.chunk_threshold_words = chunk_threshold_words
        self.concurrency_limit = concurrency_limit
        self.model = model
        self.timeout = timeout

        if small_threshold_words <= chunk_threshold_words:
            logger.warning(
                f"Transcripts of {small_threshold_words}-{chunk_threshold_words} words match no "
                "summarization strategy and will be rejected"
            )

    def route(self, word_count: int) -> SummaryRoute:
        """
        Pick the strategy for a transcript of `word_count` words.

        Raises:
            RoutingError: If the size falls between the two thresholds.
        """
        if word_count < self.small_threshold_words:
            return SummaryRoute.SINGLE_PASS
        if word_count > self.chunk_threshold_words:
            return SummaryRoute.CHUNKED_PASS
        raise RoutingError(word_count, self.small_threshold_words, self.chunk_threshold_words)

    async def summarize(
        self,
        conversation_id: str,
        transcript: str,
        question: str,
        options: Optional[SummaryOptions] = None,
        deadline_seconds: Optional[float] = None,
    ) -> SummaryOutcome:
        """
        Answer `question` about `transcript` within a conversation.

        Cancelling the awaiting task cancels every in-flight chunk call.

        Args:
            conversation_id: Conversation whose history gives context and receives the answer.
            transcript: The full transcript text.
            question: The user's free-form question.
            options: Customization prepended to the answering call.
            deadline_seconds: Optional bound on the whole request.

        Returns:
            SummaryOutcome with the final answer and routing details.
        """
        if deadline_seconds is None:
            return await self._summarize(conversation_id, transcript, question, options)
        try:
            return await asyncio.wait_for(
                self._summarize(conversation_id, transcript, question, options),
                timeout=deadline_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Summarization exceeded its {deadline_seconds}s deadline")
            raise LLMTimeoutError(deadline_seconds) from e

    async def _summarize(
        self,
        conversation_id: str,
        transcript: str,
        question: str,
        options: Optional[SummaryOptions],
    ) -> SummaryOutcome:
        word_count = count_words(transcript)
        route = self.route(word_count)
        logger.info(f"Transcript has {word_count} words; using {route.value}")

        if route == SummaryRoute.SINGLE_PASS:
            answer = await self._single_pass(conversation_id, transcript, question, options)
            return SummaryOutcome(answer=answer, route=route, word_count=word_count)

        return await self._chunked_pass(conversation_id, transcript, question, options, word_count)

    async def _single_pass(
        self,
        conversation_id: str,
        transcript: str,
        question: str,
        options: Optional[SummaryOptions],
    ) -> str:
        """
        Summarize the whole transcript in one call with the full history.
        """
        user_message = LLMMessage(
            role=LLMRole.USER,
            content=SummarizationPrompts.SINGLE_PASS.format(transcript=transcript, question=question),
        )
        history = self.conversation_store.get(conversation_id)
        messages = with_customization([*history, user_message], options)

        response = await self.llm_provider.generate_text(
            messages=messages,
            temperature=SummarizationConfig.SINGLE_PASS_TEMPERATURE,
            model=self.model,
            timeout=self.timeout,
        )

        await self.conversation_store.append(
            conversation_id,
            user_message,
            LLMMessage(role=LLMRole.ASSISTANT, content=response.content),
        )
        return response.content

    async def _chunked_pass(
        self,
        conversation_id: str,
        transcript: str,
        question: str,
        options: Optional[SummaryOptions],
        word_count: int,
    ) -> SummaryOutcome:
        """
        Summarize each chunk concurrently, then reduce.

        Phase 1 (Map): every chunk gets its own scaffolded call.
        Phase 2 (Reduce): successful extracts, in chunk order, are combined.
        """
        chunks = self.chunker.split(transcript)
        total = len(chunks)
        logger.info(f"Phase 1 (Map): Processing {total} chunks")

        semaphore = asyncio.Semaphore(self.concurrency_limit)
        results = await asyncio.gather(
            *(
                self._summarize_chunk(index, chunk, total, question, semaphore)
                for index, chunk in enumerate(chunks)
            ),
            return_exceptions=True,
        )

        summaries: list[ChunkSummary] = []
        failures: list[LLMError] = []
        for index, result in enumerate(results):
            if isinstance(result, LLMError):
                logger.warning(f"Chunk {index + 1}/{total} failed: {result.title}")
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                summaries.append(result)

        if not summaries:
            logger.error(f"All {total} chunks failed")
            error = TotalFailureError(failed=len(failures), total=total)
            raise error from (failures[0] if failures else None)

        if failures:
            logger.warning(f"Continuing with {len(summaries)}/{total} chunk summaries")

        summaries.sort(key=lambda s: s.index)
        logger.info("Phase 2 (Reduce): Combining chunk summaries")
        answer = await self._reduce(summaries, question, options)

        await self.conversation_store.append(
            conversation_id,
            LLMMessage(role=LLMRole.USER, content=question),
            LLMMessage(role=LLMRole.ASSISTANT, content=answer),
        )
        return SummaryOutcome(
            answer=answer,
            route=SummaryRoute.CHUNKED_PASS,
            word_count=word_count,
            chunk_count=total,
            failed_chunks=len(failures),
        )

    def build_chunk_messages(
        self, index: int, chunk: str, total: int, question: str
    ) -> list[LLMMessage]:
        """
        Build the fixed system scaffold for one chunk (0-based index).

        The last chunk also gets the closing instruction.
        """
        position = index + 1
        contents = [
            SummarizationPrompts.CHUNK_LOOP_START.format(index=position),
            SummarizationPrompts.CHUNK_TASK.format(question=question),
            SummarizationPrompts.CHUNK_POSITION.format(index=position, total=total, question=question),
            SummarizationPrompts.CHUNK_CONTENT.format(index=position, content=chunk),
            SummarizationPrompts.CHUNK_LOOP_END.format(index=position),
        ]
        if index == total - 1:
            contents.append(SummarizationPrompts.FINAL_CHUNK)
        return [LLMMessage(role=LLMRole.SYSTEM, content=content) for content in contents]

    async def _summarize_chunk(
        self,
        index: int,
        chunk: str,
        total: int,
        question: str,
        semaphore: asyncio.Semaphore,
    ) -> ChunkSummary:
        """
        Summarize one chunk (Map phase unit).
        """
        async with semaphore:
            logger.debug(f"Map phase: Summarizing chunk {index + 1}/{total}")
            response = await self.llm_provider.generate_text(
                messages=self.build_chunk_messages(index, chunk, total, question),
                temperature=SummarizationConfig.CHUNK_TEMPERATURE,
                model=self.model,
                timeout=self.timeout,
            )

        if not response.content.strip():
            raise LLMError(detail=f"Chunk {index + 1} produced no content.")
        return ChunkSummary(index=index, content=response.content)

    async def _reduce(
        self,
        summaries: list[ChunkSummary],
        question: str,
        options: Optional[SummaryOptions],
    ) -> str:
        """
        Combine chunk extracts into the final answer.
        """
        intermediate = "\n".join(summary.content for summary in summaries)
        messages = with_customization(
            [
                LLMMessage(
                    role=LLMRole.SYSTEM,
                    content=SummarizationPrompts.REDUCE_PHASE.format(
                        intermediate=intermediate, question=question
                    ),
                )
            ],
            options,
        )

        try:
            response = await self.llm_provider.generate_text(
                messages=messages,
                temperature=SummarizationConfig.REDUCE_TEMPERATURE,
                model=self.model,
                timeout=self.timeout,
            )
        except LLMError as e:
            logger.error(f"Reduce phase failed: {e.title}")
            raise ReduceFailureError(detail=e.detail) from e

        return response.content
