"""
Snapshot storage.

Every backend honors the same version contract: a snapshot is written only
when the stored version still equals ``snapshot.version`` (0 meaning "never
stored"), after which the version is incremented. A stale write raises
ConcurrencyError and leaves the stored document untouched.

Backends:
- CacheSnapshotStore: aiocache (Redis or in-process memory), JSON documents
- SqlSnapshotStore: async SQLAlchemy, one row per snapshot
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, List, Optional

import structlog
from aiocache.base import BaseCache
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from numberland.core.exceptions import ConcurrencyError
from numberland.models.progress import PeriodType, Snapshot, period_start_for, utcnow
from numberland.models.snapshot_record import SnapshotRecord

logger = structlog.get_logger()


class SnapshotStore(ABC):
    """Persistence contract for progress snapshots."""

    @abstractmethod
    async def get(self, user_id: str, period_type: PeriodType, period_start: date) -> Optional[Snapshot]:
        """Load the snapshot for an exact period, or None."""

    @abstractmethod
    async def put(self, snapshot: Snapshot) -> Snapshot:
        """Write ``snapshot`` if its version is current; return it with the new version."""

    @abstractmethod
    async def query_range(
        self,
        user_id: str,
        period_type: PeriodType,
        start: date,
        end: date
    ) -> List[Snapshot]:
        """Snapshots whose period starts within ``[start, end]``, oldest first."""

    @abstractmethod
    async def delete_user(self, user_id: str) -> int:
        """Remove every snapshot for a user; return how many were removed."""

    async def get_or_create(
        self,
        user_id: str,
        period_type: PeriodType = PeriodType.DAILY,
        day: date = None
    ) -> Snapshot:
        """
        Load the snapshot covering ``day``, or a fresh unsaved one.

        A fresh snapshot has version 0 and is only stored by ``put``.
        """
        if not day:
            day = utcnow().date()
        period_start = period_start_for(period_type, day)

        snapshot = await self.get(user_id, period_type, period_start)
        if snapshot is None:
            snapshot = Snapshot(user_id=user_id, period_type=period_type, period_start=period_start)
        return snapshot

    async def latest(self, user_id: str, period_type: PeriodType = PeriodType.DAILY) -> Optional[Snapshot]:
        snapshots = await self.query_range(user_id, period_type, date.min, date.max)
        return snapshots[-1] if snapshots else None


class CacheSnapshotStore(SnapshotStore):
    """
    Snapshot store on an aiocache backend.

    Documents live under ``{ns}:snapshot:{user}:{period}:{start}``; a per-user
    index key lists the document keys so range queries and deletes do not
    need key scans. Version checks are atomic only within one process, which
    is where the service's per-user locks apply.
    """

    def __init__(self, cache: BaseCache, namespace: str = "numberland"):
        self.cache = cache
        self.namespace = namespace

    def _snapshot_key(self, user_id: str, period_type: PeriodType, period_start: date) -> str:
        return f"{self.namespace}:snapshot:{user_id}:{period_type.value}:{period_start.isoformat()}"

    def _index_key(self, user_id: str) -> str:
        return f"{self.namespace}:index:{user_id}"

    async def _load(self, key: str) -> Optional[Snapshot]:
        raw = await self.cache.get(key)
        if raw is None:
            return None
        return Snapshot.model_validate_json(raw)

    async def get(self, user_id: str, period_type: PeriodType, period_start: date) -> Optional[Snapshot]:
        return await self._load(self._snapshot_key(user_id, period_type, period_start))

    async def put(self, snapshot: Snapshot) -> Snapshot:
        key = self._snapshot_key(snapshot.user_id, snapshot.period_type, snapshot.period_start)

        stored = await self._load(key)
        stored_version = stored.version if stored else 0
        if stored_version != snapshot.version:
            raise ConcurrencyError(key, snapshot.version)

        saved = snapshot.model_copy(update={"version": snapshot.version + 1})
        await self.cache.set(key, saved.model_dump_json())

        if stored is None:
            index_key = self._index_key(snapshot.user_id)
            index = await self.cache.get(index_key) or []
            if key not in index:
                index.append(key)
                await self.cache.set(index_key, index)

        logger.debug("Snapshot stored", key=key, version=saved.version)
        return saved

    async def query_range(
        self,
        user_id: str,
        period_type: PeriodType,
        start: date,
        end: date
    ) -> List[Snapshot]:
        index = await self.cache.get(self._index_key(user_id)) or []

        snapshots = []
        for key in index:
            snapshot = await self._load(key)
            if snapshot is None:
                continue
            if snapshot.period_type == period_type and start <= snapshot.period_start <= end:
                snapshots.append(snapshot)

        return sorted(snapshots, key=lambda s: s.period_start)

    async def delete_user(self, user_id: str) -> int:
        index_key = self._index_key(user_id)
        index = await self.cache.get(index_key) or []

        removed = 0
        for key in index:
            removed += await self.cache.delete(key)
        await self.cache.delete(index_key)

        logger.info("Snapshots deleted", user_id=user_id, count=removed)
        return removed


class SqlSnapshotStore(SnapshotStore):
    """Snapshot store on async SQLAlchemy with conditional updates on the version column."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    @staticmethod
    def _to_snapshot(record: SnapshotRecord) -> Snapshot:
        snapshot = Snapshot.model_validate(record.document)
        snapshot.version = record.version
        return snapshot

    async def get(self, user_id: str, period_type: PeriodType, period_start: date) -> Optional[Snapshot]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SnapshotRecord).where(
                    SnapshotRecord.user_id == user_id,
                    SnapshotRecord.period_type == period_type.value,
                    SnapshotRecord.period_start == period_start,
                )
            )
            record = result.scalar_one_or_none()

        return self._to_snapshot(record) if record else None

    async def put(self, snapshot: Snapshot) -> Snapshot:
        expected = snapshot.version
        saved = snapshot.model_copy(update={"version": expected + 1})
        document = saved.model_dump(mode="json")

        async with self.session_factory() as session:
            if expected == 0:
                session.add(
                    SnapshotRecord(
                        user_id=saved.user_id,
                        period_type=saved.period_type.value,
                        period_start=saved.period_start,
                        version=saved.version,
                        document=document,
                        created_at=saved.created_at,
                        last_updated=saved.last_updated,
                    )
                )
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    raise ConcurrencyError(snapshot.key, expected)
            else:
                result = await session.execute(
                    update(SnapshotRecord)
                    .where(
                        SnapshotRecord.user_id == saved.user_id,
                        SnapshotRecord.period_type == saved.period_type.value,
                        SnapshotRecord.period_start == saved.period_start,
                        SnapshotRecord.version == expected,
                    )
                    .values(version=saved.version, document=document, last_updated=saved.last_updated)
                )
                if result.rowcount == 0:
                    await session.rollback()
                    raise ConcurrencyError(snapshot.key, expected)
                await session.commit()

        logger.debug("Snapshot stored", key=snapshot.key, version=saved.version)
        return saved

    async def query_range(
        self,
        user_id: str,
        period_type: PeriodType,
        start: date,
        end: date
    ) -> List[Snapshot]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SnapshotRecord)
                .where(
                    SnapshotRecord.user_id == user_id,
                    SnapshotRecord.period_type == period_type.value,
                    SnapshotRecord.period_start >= start,
                    SnapshotRecord.period_start <= end,
                )
                .order_by(SnapshotRecord.period_start)
            )
            records = result.scalars().all()

        return [self._to_snapshot(record) for record in records]

    async def latest(self, user_id: str, period_type: PeriodType = PeriodType.DAILY) -> Optional[Snapshot]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SnapshotRecord)
                .where(
                    SnapshotRecord.user_id == user_id,
                    SnapshotRecord.period_type == period_type.value,
                )
                .order_by(SnapshotRecord.period_start.desc())
                .limit(1)
            )
            record = result.scalar_one_or_none()

        return self._to_snapshot(record) if record else None

    async def delete_user(self, user_id: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(SnapshotRecord).where(SnapshotRecord.user_id == user_id)
            )
            await session.commit()

        logger.info("Snapshots deleted", user_id=user_id, count=result.rowcount)
        return result.rowcount
