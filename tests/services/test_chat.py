import asyncio

import pytest
from unittest.mock import AsyncMock

from vidbriefs.core.constants import InsightConfig
from vidbriefs.core.exceptions import (
    LLMConnectionError,
    NotFoundError,
    RateLimitError,
    UnauthorizedError,
)
from vidbriefs.core.prompts import ConversationPrompts
from vidbriefs.core.providers.llm_provider import LLMResponse
from vidbriefs.models import (
    LLMRole,
    Message,
    SummaryLength,
    SummaryOptions,
    SummaryOutcome,
    SummaryRoute,
)
from vidbriefs.repositories.insights import InsightRepository
from vidbriefs.services.chat import ChatService, render_transcript
from vidbriefs.services.rate_limiter import RequestRateLimiter
from vidbriefs.services.summarization import SummarizationService
from vidbriefs.services.transcripts import TranscriptService


VIDEO_URL = "https://youtu.be/abc123"


def make_response(content):
    return LLMResponse(content=content, model="test-model")


@pytest.fixture
def transcript_service():
    service = AsyncMock(spec=TranscriptService)
    service.fetch.return_value = "the speaker talks about tides"
    return service


@pytest.fixture
def insight_repository(kv_store):
    return InsightRepository(kv_store)


@pytest.fixture
def chat_service(
    mock_llm_provider, conversation_store, transcript_service, insight_repository, kv_store, clock
):
    return ChatService(
        transcript_service=transcript_service,
        summarization_service=SummarizationService(
            llm_provider=mock_llm_provider,
            conversation_store=conversation_store,
        ),
        conversation_store=conversation_store,
        insight_repository=insight_repository,
        rate_limiter=RequestRateLimiter(kv_store, max_requests=2, clock=clock),
        chat_llm_provider=mock_llm_provider,
        chat_model="gpt-4",
    )


# --- Sessions ---

@pytest.mark.asyncio
async def test_load_video_seeds_conversation(chat_service, conversation_store):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)

    history = conversation_store.get(conversation_id)
    assert [m.role for m in history] == [LLMRole.SYSTEM, LLMRole.SYSTEM]
    assert history[0].content == ConversationPrompts.SEED_SYSTEM
    assert "the speaker talks about tides" in history[1].content
    assert chat_service.current_conversation("device-1") == conversation_id


@pytest.mark.asyncio
async def test_load_video_is_rate_limited(chat_service, transcript_service):
    await chat_service.load_video("device-1", VIDEO_URL)
    await chat_service.load_video("device-1", VIDEO_URL)

    with pytest.raises(RateLimitError):
        await chat_service.load_video("device-1", VIDEO_URL)
    assert transcript_service.fetch.await_count == 2


@pytest.mark.asyncio
async def test_ask_runs_pipeline_in_new_conversation(chat_service, conversation_store):
    conversation_id, outcome = await chat_service.ask("device-1", VIDEO_URL, "What about tides?")

    assert outcome.route == SummaryRoute.SINGLE_PASS
    assert outcome.answer == "Mocked Summary Content"
    assert conversation_store.get(conversation_id)[-1].content == "Mocked Summary Content"
    assert chat_service.current_conversation("device-1") == conversation_id


@pytest.mark.asyncio
async def test_failed_ask_leaves_no_conversation(chat_service, conversation_store, mock_llm_provider):
    mock_llm_provider.generate_text.side_effect = UnauthorizedError()

    with pytest.raises(UnauthorizedError):
        await chat_service.ask("device-1", VIDEO_URL, "What about tides?")

    assert chat_service.current_conversation("device-1") is None
    assert conversation_store.ids() == []


@pytest.mark.asyncio
async def test_failed_ask_keeps_previous_current_conversation(chat_service, mock_llm_provider):
    loaded_id = await chat_service.load_video("device-1", VIDEO_URL)
    mock_llm_provider.generate_text.side_effect = UnauthorizedError()

    with pytest.raises(UnauthorizedError):
        await chat_service.ask("device-1", VIDEO_URL, "What about tides?")

    assert chat_service.current_conversation("device-1") == loaded_id


@pytest.mark.asyncio
async def test_ask_uses_default_deadline(conversation_store, transcript_service, kv_store, clock):
    summarization_service = AsyncMock(spec=SummarizationService)
    summarization_service.summarize.return_value = SummaryOutcome(
        answer="A", route=SummaryRoute.SINGLE_PASS, word_count=5
    )
    service = ChatService(
        transcript_service=transcript_service,
        summarization_service=summarization_service,
        conversation_store=conversation_store,
        insight_repository=InsightRepository(kv_store),
        rate_limiter=RequestRateLimiter(kv_store, max_requests=5, clock=clock),
        chat_llm_provider=AsyncMock(),
        deadline_seconds=90.0,
    )

    await service.ask("device-1", VIDEO_URL, "Q?")
    assert summarization_service.summarize.call_args.kwargs["deadline_seconds"] == 90.0

    await service.ask("device-1", VIDEO_URL, "Q?", deadline_seconds=5.0)
    assert summarization_service.summarize.call_args.kwargs["deadline_seconds"] == 5.0


@pytest.mark.asyncio
async def test_send_message_appends_turn(chat_service, conversation_store, mock_llm_provider):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)
    mock_llm_provider.generate_text.return_value = make_response("It is about tides.")

    reply = await chat_service.send_message(conversation_id, "What is it about?")

    assert reply == "It is about tides."
    kwargs = mock_llm_provider.generate_text.call_args.kwargs
    assert kwargs["model"] == "gpt-4"
    assert [m.role for m in kwargs["messages"]] == [LLMRole.SYSTEM, LLMRole.SYSTEM, LLMRole.USER]

    history = conversation_store.get(conversation_id)
    assert history[-2] == Message(role=LLMRole.USER, content="What is it about?")
    assert history[-1] == Message(role=LLMRole.ASSISTANT, content="It is about tides.")


@pytest.mark.asyncio
async def test_send_message_customization_is_not_stored(
    chat_service, conversation_store, mock_llm_provider
):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)

    await chat_service.send_message(
        conversation_id, "Summarize", SummaryOptions(length=SummaryLength.SHORT)
    )

    sent = mock_llm_provider.generate_text.call_args.kwargs["messages"]
    assert len(sent) == 4
    assert len(conversation_store.get(conversation_id)) == 4


@pytest.mark.asyncio
async def test_send_message_failure_appends_nothing(
    chat_service, conversation_store, mock_llm_provider
):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)
    before = conversation_store.get(conversation_id)
    mock_llm_provider.generate_text.side_effect = UnauthorizedError()

    with pytest.raises(UnauthorizedError):
        await chat_service.send_message(conversation_id, "Hello?")

    assert conversation_store.get(conversation_id) == before


@pytest.mark.asyncio
async def test_send_message_unknown_conversation(chat_service):
    with pytest.raises(NotFoundError):
        await chat_service.send_message("missing", "Hello?")


@pytest.mark.asyncio
async def test_concurrent_turns_are_serialized(chat_service, conversation_store, mock_llm_provider):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)
    seen_lengths = []

    async def generate_text(messages, **kwargs):
        seen_lengths.append(len(messages))
        await asyncio.sleep(0.01)
        return make_response(f"reply to {messages[-1].content}")

    mock_llm_provider.generate_text.side_effect = generate_text

    await asyncio.gather(
        chat_service.send_message(conversation_id, "first"),
        chat_service.send_message(conversation_id, "second"),
    )

    # The second turn sees the first turn's messages
    assert seen_lengths == [3, 5]
    contents = [m.content for m in conversation_store.get(conversation_id)[2:]]
    assert contents == ["first", "reply to first", "second", "reply to second"]


@pytest.mark.asyncio
async def test_new_chat_clears_current(chat_service):
    await chat_service.load_video("device-1", VIDEO_URL)
    chat_service.new_chat("device-1")
    assert chat_service.current_conversation("device-1") is None
    chat_service.new_chat("device-1")


# --- Insight library ---

@pytest.mark.asyncio
async def test_save_insight_titles_and_renders_body(
    chat_service, mock_llm_provider, insight_repository
):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)
    mock_llm_provider.generate_text.return_value = make_response("It is about tides.")
    await chat_service.send_message(conversation_id, "What is it about?")
    mock_llm_provider.generate_text.return_value = make_response('"Tides Explained"')

    insight = await chat_service.save_insight(conversation_id)

    assert insight.id == conversation_id
    assert insight.title == "Tides Explained"
    assert insight.body == "User: What is it about?\nAI: It is about tides."
    assert await insight_repository.get(conversation_id) == insight


@pytest.mark.asyncio
async def test_save_insight_falls_back_to_default_title(chat_service, mock_llm_provider):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)
    await chat_service.send_message(conversation_id, "Hi")
    mock_llm_provider.generate_text.side_effect = LLMConnectionError()

    insight = await chat_service.save_insight(conversation_id)

    assert insight.title == InsightConfig.UNTITLED


@pytest.mark.asyncio
async def test_save_insight_twice_updates_in_place(chat_service, insight_repository):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)
    await chat_service.send_message(conversation_id, "Hi")
    first = await chat_service.save_insight(conversation_id)
    await chat_service.send_message(conversation_id, "More")

    second = await chat_service.save_insight(conversation_id)

    assert len(await insight_repository.list()) == 1
    assert second.created_at == first.created_at
    assert "User: More" in second.body


@pytest.mark.asyncio
async def test_restore_insight_reloads_history(chat_service, conversation_store):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)
    await chat_service.send_message(conversation_id, "Hi")
    saved = await chat_service.save_insight(conversation_id)
    await chat_service.delete_conversation(conversation_id)

    restored = await chat_service.restore_insight(saved.id, "device-2")

    assert conversation_store.get(saved.id) == saved.messages
    assert chat_service.current_conversation("device-2") == restored.id


@pytest.mark.asyncio
async def test_restore_unknown_insight(chat_service):
    with pytest.raises(NotFoundError):
        await chat_service.restore_insight("missing", "device-1")


# --- Conversation management ---

@pytest.mark.asyncio
async def test_delete_conversation(chat_service, conversation_store):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)

    await chat_service.delete_conversation(conversation_id)

    assert not conversation_store.exists(conversation_id)
    assert chat_service.current_conversation("device-1") is None
    with pytest.raises(NotFoundError):
        chat_service.get_conversation(conversation_id)
    with pytest.raises(NotFoundError):
        await chat_service.delete_conversation(conversation_id)


@pytest.mark.asyncio
async def test_turn_queued_behind_delete_does_not_recreate_conversation(
    chat_service, conversation_store, mock_llm_provider
):
    conversation_id = await chat_service.load_video("device-1", VIDEO_URL)

    async def generate_text(messages, **kwargs):
        await asyncio.sleep(0.01)
        return make_response("reply")

    mock_llm_provider.generate_text.side_effect = generate_text

    results = await asyncio.gather(
        chat_service.send_message(conversation_id, "first"),
        chat_service.delete_conversation(conversation_id),
        chat_service.send_message(conversation_id, "second"),
        return_exceptions=True,
    )

    assert results[0] == "reply"
    assert results[1] is None
    assert isinstance(results[2], NotFoundError)
    assert not conversation_store.exists(conversation_id)
    assert mock_llm_provider.generate_text.await_count == 1


def test_render_transcript_skips_system_messages():
    messages = [
        Message(role=LLMRole.SYSTEM, content="persona"),
        Message(role=LLMRole.USER, content="q"),
        Message(role=LLMRole.ASSISTANT, content="a"),
    ]
    assert render_transcript(messages) == "User: q\nAI: a"
