"""PagedCacheStore — cached list items plus their pagination cursors.

One generic store serves every list type; the list type is a column on both
tables, so lists never see each other's rows.

Writes that belong to one page load go through ``transaction()``. Everything
written inside it commits together or not at all, including when the
surrounding task is cancelled.
"""

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cinemax.errors import CacheIntegrityError, NotFoundError
from cinemax.lists import ContentType
from cinemax.models import CachedItem, RemoteKey
from cinemax.schemas import MediaItem, RemoteKeyRecord

logger = logging.getLogger(__name__)


class StoreTransaction:
    """Write operations bound to one open database transaction."""

    def __init__(self, session: AsyncSession, list_type: str):
        self._session = session
        self._list_type = list_type

    async def clear_all_keys(self) -> None:
        await self._session.execute(delete(RemoteKey).where(RemoteKey.list_type == self._list_type))

    async def clear_all_items(self) -> None:
        await self._session.execute(delete(CachedItem).where(CachedItem.list_type == self._list_type))

    async def replace_all_keys(self, records: Iterable[RemoteKeyRecord]) -> None:
        """Upsert cursors. A record whose id already exists replaces the old row."""
        rows = {r.id: r for r in records}
        if not rows:
            return
        await self._session.execute(
            delete(RemoteKey).where(
                RemoteKey.list_type == self._list_type,
                RemoteKey.id.in_(list(rows)),
            )
        )
        self._session.add_all(
            RemoteKey(
                list_type=self._list_type,
                id=r.id,
                previous_page=r.previous_page,
                next_page=r.next_page,
                created_at=r.created_at,
            )
            for r in rows.values()
        )
        await self._session.flush()

    async def replace_all_items(self, items: Iterable[MediaItem]) -> None:
        """Upsert items after the current tail of the list, replacing whole rows on conflict."""
        rows = {item.id: item for item in items}
        if not rows:
            return
        await self._session.execute(
            delete(CachedItem).where(
                CachedItem.list_type == self._list_type,
                CachedItem.id.in_(list(rows)),
            )
        )
        tail = await self._session.scalar(
            select(func.max(CachedItem.position)).where(CachedItem.list_type == self._list_type)
        )
        start = -1 if tail is None else tail
        self._session.add_all(
            CachedItem(
                list_type=self._list_type,
                position=start + offset,
                **_item_columns(item),
            )
            for offset, item in enumerate(rows.values(), start=1)
        )
        await self._session.flush()

    async def check_integrity(self) -> None:
        """Raise CacheIntegrityError if any cached item of the list lacks a cursor."""
        orphans = await self._session.scalar(
            select(func.count())
            .select_from(CachedItem)
            .outerjoin(
                RemoteKey,
                (RemoteKey.list_type == CachedItem.list_type) & (RemoteKey.id == CachedItem.id),
            )
            .where(CachedItem.list_type == self._list_type, RemoteKey.id.is_(None))
        )
        if orphans:
            raise CacheIntegrityError(f"{orphans} cached item(s) without a cursor in {self._list_type}")


def _item_columns(item: MediaItem) -> dict:
    columns = item.model_dump()
    columns["media_type"] = item.media_type.value
    return columns


class CachedItemSequence:
    """Restartable paginated read view over one list's cached items.

    Every ``async for`` starts again from the first item and walks the list in
    ``position`` order, one page-sized query at a time.
    """

    def __init__(self, store: "PagedCacheStore", page_size: int):
        self._store = store
        self.page_size = page_size

    async def load(self, offset: int, limit: int) -> list[MediaItem]:
        return await self._store.load_items(offset, limit)

    async def __aiter__(self) -> AsyncIterator[MediaItem]:
        after: int | None = None
        while True:
            rows = await self._store.load_items_after(after, self.page_size)
            for position, item in rows:
                yield item
                after = position
            if len(rows) < self.page_size:
                return


class PagedCacheStore:
    """Persisted items and pagination cursors for a single list type."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], list_type: ContentType):
        self._session_factory = session_factory
        self.list_type = ContentType(list_type)

    @property
    def _key(self) -> str:
        return self.list_type.value

    # ═══════════════ CURSORS ═══════════════

    async def get_key(self, id: int) -> RemoteKeyRecord:
        """Cursor stored with item `id`. Raises NotFoundError when there is none."""
        async with self._session_factory() as session:
            row = await session.get(RemoteKey, (self._key, id))
            if row is None:
                raise NotFoundError(f"No remote key for item {id} in {self._key}")
            return RemoteKeyRecord.model_validate(row)

    async def replace_all_keys(self, records: Iterable[RemoteKeyRecord]) -> None:
        async with self.transaction() as tx:
            await tx.replace_all_keys(records)

    async def clear_all_keys(self) -> None:
        async with self.transaction() as tx:
            await tx.clear_all_keys()

    async def last_updated(self) -> datetime | None:
        """When the oldest cursor of the list was written, or None for an empty list."""
        async with self._session_factory() as session:
            value = await session.scalar(
                select(func.min(RemoteKey.created_at)).where(RemoteKey.list_type == self._key)
            )
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    # ═══════════════ ITEMS ═══════════════

    def get_cached_items(self, page_size: int = 20) -> CachedItemSequence:
        return CachedItemSequence(self, page_size)

    async def load_items(self, offset: int, limit: int) -> list[MediaItem]:
        async with self._session_factory() as session:
            result = await session.scalars(
                select(CachedItem)
                .where(CachedItem.list_type == self._key)
                .order_by(CachedItem.position)
                .offset(offset)
                .limit(limit)
            )
            return [MediaItem.model_validate(row) for row in result]

    async def load_items_after(self, position: int | None, limit: int) -> list[tuple[int, MediaItem]]:
        """Keyset page: up to `limit` items ranked after `position` (from the start when None)."""
        stmt = select(CachedItem).where(CachedItem.list_type == self._key)
        if position is not None:
            stmt = stmt.where(CachedItem.position > position)
        async with self._session_factory() as session:
            result = await session.scalars(stmt.order_by(CachedItem.position).limit(limit))
            return [(row.position, MediaItem.model_validate(row)) for row in result]

    async def last_item(self) -> MediaItem | None:
        """The tail boundary item, used to look up the next page."""
        async with self._session_factory() as session:
            row = await session.scalar(
                select(CachedItem)
                .where(CachedItem.list_type == self._key)
                .order_by(CachedItem.position.desc())
                .limit(1)
            )
            return MediaItem.model_validate(row) if row is not None else None

    async def count(self) -> int:
        async with self._session_factory() as session:
            value = await session.scalar(
                select(func.count()).select_from(CachedItem).where(CachedItem.list_type == self._key)
            )
            return value or 0

    async def replace_all_items(self, items: Iterable[MediaItem]) -> None:
        async with self.transaction() as tx:
            await tx.replace_all_items(items)

    async def clear_all_items(self) -> None:
        async with self.transaction() as tx:
            await tx.clear_all_items()

    # ═══════════════ ATOMIC WRITES ═══════════════

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreTransaction]:
        """Open one write transaction; commit on exit, roll back on any exception."""
        async with self._session_factory() as session:
            async with session.begin():
                yield StoreTransaction(session, self._key)
