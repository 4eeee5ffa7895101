from vidbriefs.core.constants import StorageKeys
from vidbriefs.core.providers.key_value_store import KeyValueStore


class TermsRepository:
    """
    Repository layer for the accepted-terms flag.
    """
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def accepted(self) -> bool:
        return bool(await self.store.get_json(StorageKeys.TERMS_ACCEPTED, default=False))

    async def accept(self) -> None:
        await self.store.set_json(StorageKeys.TERMS_ACCEPTED, True)

    async def revoke(self) -> None:
        await self.store.delete(StorageKeys.TERMS_ACCEPTED)
