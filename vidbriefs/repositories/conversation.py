"""
Repository layer for conversation histories.
"""
import asyncio
import uuid
from collections import defaultdict
from typing import Callable, Iterable, List

from loguru import logger

from vidbriefs.core.constants import StorageKeys
from vidbriefs.core.prompts import ConversationPrompts
from vidbriefs.core.providers.key_value_store import KeyValueStore
from vidbriefs.models import LLMRole, Message


class ConversationStore:
    """
    Ordered, append-only message histories keyed by conversation id.

    The in-memory map is the working copy; every mutation writes the whole
    map through to the key-value store under `conversationHistory` so
    histories survive restarts. Writes to one conversation are serialized
    with a per-id lock.
    """

    def __init__(
        self,
        store: KeyValueStore,
        seed_message: str = ConversationPrompts.SEED_SYSTEM,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.store = store
        self.seed_message = seed_message
        self.id_factory = id_factory
        self._conversations: dict[str, List[Message]] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._persist_lock = asyncio.Lock()

    async def load(self) -> int:
        """
        Hydrate the working copy from durable storage.

        Returns:
            Number of conversations loaded.
        """
        raw = await self.store.get_json(StorageKeys.CONVERSATION_HISTORY, default={})
        self._conversations = {
            conversation_id: [Message(**item) for item in messages]
            for conversation_id, messages in raw.items()
        }
        logger.info(f"Loaded {len(self._conversations)} conversations from storage")
        return len(self._conversations)

    async def create(self) -> str:
        """Allocate a new conversation seeded with the system persona."""
        conversation_id = self.id_factory()
        async with self._locks[conversation_id]:
            await self._commit(
                conversation_id, [Message(role=LLMRole.SYSTEM, content=self.seed_message)]
            )
        logger.debug(f"Created conversation {conversation_id}")
        return conversation_id

    async def append_user(self, conversation_id: str, text: str) -> None:
        await self.append(conversation_id, Message(role=LLMRole.USER, content=text))

    async def append_assistant(self, conversation_id: str, text: str) -> None:
        await self.append(conversation_id, Message(role=LLMRole.ASSISTANT, content=text))

    async def append_system(self, conversation_id: str, text: str) -> None:
        await self.append(conversation_id, Message(role=LLMRole.SYSTEM, content=text))

    async def append(self, conversation_id: str, *messages: Message) -> None:
        """
        Append one or more messages atomically, in the given order.

        An unknown id gets an empty history created on demand. If the
        storage write fails the in-memory history is left unchanged.
        """
        async with self._locks[conversation_id]:
            history = self._conversations.get(conversation_id)
            if history is None:
                logger.warning(f"Appending to unknown conversation {conversation_id}; creating it")
                history = []
            await self._commit(conversation_id, [*history, *messages])

    async def replace(self, conversation_id: str, messages: Iterable[Message]) -> None:
        """Overwrite a conversation's history, e.g. when restoring a saved insight."""
        async with self._locks[conversation_id]:
            await self._commit(conversation_id, list(messages))

    def get(self, conversation_id: str) -> List[Message]:
        """Return a copy of the history, or an empty list for an unknown id."""
        return list(self._conversations.get(conversation_id, []))

    def exists(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    def ids(self) -> List[str]:
        return list(self._conversations)

    async def clear(self, conversation_id: str) -> bool:
        """
        Delete one conversation.

        Returns:
            True if a conversation was removed.
        """
        async with self._locks[conversation_id]:
            removed = self._conversations.pop(conversation_id, None) is not None
            if removed:
                await self._persist()
        self._locks.pop(conversation_id, None)
        return removed

    async def clear_all(self) -> None:
        self._conversations.clear()
        self._locks.clear()
        async with self._persist_lock:
            await self.store.delete(StorageKeys.CONVERSATION_HISTORY)
        logger.info("Cleared all conversations")

    async def _commit(self, conversation_id: str, history: List[Message]) -> None:
        """Swap in a new history and write it through, restoring the old one on failure."""
        previous = self._conversations.get(conversation_id)
        self._conversations[conversation_id] = history
        try:
            await self._persist()
        except Exception:
            if previous is None:
                self._conversations.pop(conversation_id, None)
            else:
                self._conversations[conversation_id] = previous
            raise

    async def _persist(self) -> None:
        async with self._persist_lock:
            snapshot = {
                conversation_id: [message.model_dump(mode="json") for message in messages]
                for conversation_id, messages in self._conversations.items()
            }
            await self.store.set_json(StorageKeys.CONVERSATION_HISTORY, snapshot)
