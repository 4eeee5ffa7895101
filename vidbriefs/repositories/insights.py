import asyncio
from typing import List, Optional

from loguru import logger

from vidbriefs.core.constants import StorageKeys
from vidbriefs.core.providers.key_value_store import KeyValueStore
from vidbriefs.models import Insight
from vidbriefs.models.conversation import utcnow


class InsightRepository:
    """
    Repository layer for the saved insight library.

    The whole library is one JSON list under `savedInsights`, kept in
    insertion order.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = asyncio.Lock()

    async def list(self) -> List[Insight]:
        """Retrieves all saved insights in the order they were first saved."""
        raw = await self.store.get_json(StorageKeys.SAVED_INSIGHTS, default=[])
        return [Insight.model_validate(item) for item in raw]

    async def get(self, insight_id: str) -> Optional[Insight]:
        for insight in await self.list():
            if insight.id == insight_id:
                return insight
        return None

    async def save(self, insight: Insight) -> Insight:
        """
        Inserts a new insight or updates the one with the same id.

        An update keeps the original `created_at` and position in the list.

        Args:
            insight (Insight): The snapshot to store.

        Returns:
            Insight: The stored snapshot.
        """
        async with self._lock:
            insights = await self.list()
            for index, existing in enumerate(insights):
                if existing.id == insight.id:
                    insight = insight.model_copy(
                        update={"created_at": existing.created_at, "updated_at": utcnow()}
                    )
                    insights[index] = insight
                    logger.debug(f"Updated insight {insight.id}")
                    break
            else:
                insights.append(insight)
                logger.debug(f"Added insight {insight.id}")
            await self._write(insights)
        return insight

    async def delete(self, insight_id: str) -> bool:
        """
        Deletes an insight by id.

        Returns:
            bool: True if an insight was removed.
        """
        async with self._lock:
            insights = await self.list()
            remaining = [i for i in insights if i.id != insight_id]
            if len(remaining) == len(insights):
                return False
            await self._write(remaining)
        logger.info(f"Deleted insight {insight_id}")
        return True

    async def clear_all(self) -> None:
        async with self._lock:
            await self.store.delete(StorageKeys.SAVED_INSIGHTS)
        logger.info("Cleared all saved insights")

    async def _write(self, insights: List[Insight]) -> None:
        await self.store.set_json(
            StorageKeys.SAVED_INSIGHTS,
            [insight.model_dump(mode="json") for insight in insights],
        )
