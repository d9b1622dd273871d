"""
Shared Test Fixtures and Configuration

Test environment variables are set before any numberland module is imported,
since settings are read once at import time.
"""

import os
import uuid
from datetime import date
from typing import Callable, Dict, List, Optional

import pytest

os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "development"
os.environ["SNAPSHOT_BACKEND"] = "cache"
os.environ["ENABLE_METRICS"] = "false"
os.environ["LOG_FORMAT"] = "plain"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("REDIS_URL", None)
os.environ.pop("DATABASE_URL", None)

from aiocache import Cache  # noqa: E402

from numberland.models.progress import Category, ItemProgress, Snapshot  # noqa: E402
from numberland.storage.snapshot_store import CacheSnapshotStore  # noqa: E402


# ============================================================================
# Model Builders
# ============================================================================


@pytest.fixture
def make_item() -> Callable[..., ItemProgress]:
    """Build an ItemProgress with arbitrary counters."""

    def _make(name: str, **fields) -> ItemProgress:
        return ItemProgress(item_name=name, **fields)

    return _make


@pytest.fixture
def make_snapshot() -> Callable[..., Snapshot]:
    """Build a daily snapshot holding the given items per category."""

    def _make(
        items: Optional[Dict[Category, List[ItemProgress]]] = None,
        user_id: str = "child-1",
        day: date = date(2024, 3, 15),
    ) -> Snapshot:
        snapshot = Snapshot(user_id=user_id, period_start=day)
        for category, category_items in (items or {}).items():
            for item in category_items:
                snapshot.items(category)[item.item_name] = item
        return snapshot

    return _make


@pytest.fixture
def stars_item(make_item) -> Callable[..., ItemProgress]:
    """Item whose overall score is exactly ``score`` via tracing stars out of 100."""

    def _make(name: str, score: int, completed: bool = False, tracing_count: int = 1) -> ItemProgress:
        return make_item(
            name,
            completed=completed,
            tracing_count=tracing_count,
            tracing_complete_count=tracing_count if completed else 0,
            total_stars=100,
            total_stars_achieved=score,
        )

    return _make


# ============================================================================
# Storage
# ============================================================================


@pytest.fixture
def memory_cache():
    """In-process aiocache instance."""
    return Cache(Cache.MEMORY)


@pytest.fixture
def cache_store(memory_cache) -> CacheSnapshotStore:
    """Cache-backed snapshot store isolated by a per-test namespace."""
    return CacheSnapshotStore(memory_cache, namespace=f"test-{uuid.uuid4().hex}")
