"""Shared dependencies for the progress service."""

from typing import Optional
from aiocache import Cache
import structlog
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from numberland.core.config import settings
from numberland.core.database import get_session_factory
from numberland.services.progress_service import ProgressService
from numberland.storage.snapshot_store import CacheSnapshotStore, SnapshotStore, SqlSnapshotStore

logger = structlog.get_logger()

# Global instances
_snapshot_cache: Optional[Cache] = None
_snapshot_store: Optional[SnapshotStore] = None

# Security
security = HTTPBearer()


async def get_snapshot_cache():
    """Get the snapshot cache, falling back to memory when Redis is unavailable."""
    global _snapshot_cache

    if _snapshot_cache is None:
        if settings.REDIS_URL:
            try:
                _snapshot_cache = Cache.from_url(settings.REDIS_URL)
                await _snapshot_cache.exists("health_check")  # Test connection
                logger.info("Redis cache connection established")
            except Exception as e:
                logger.warning("Redis cache not available, using memory cache", error=str(e))
                _snapshot_cache = Cache(Cache.MEMORY)
        else:
            _snapshot_cache = Cache(Cache.MEMORY)

    return _snapshot_cache


async def get_snapshot_store() -> SnapshotStore:
    """Get the configured snapshot store."""
    global _snapshot_store

    if _snapshot_store is None:
        if settings.SNAPSHOT_BACKEND == "database":
            _snapshot_store = SqlSnapshotStore(get_session_factory())
        else:
            _snapshot_store = CacheSnapshotStore(await get_snapshot_cache(), settings.SNAPSHOT_NAMESPACE)
        logger.info("Snapshot store ready", backend=settings.SNAPSHOT_BACKEND)

    return _snapshot_store


async def get_progress_service(store: SnapshotStore = Depends(get_snapshot_store)) -> ProgressService:
    return ProgressService(store)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Get current user from JWT token."""
    token = credentials.credentials

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
        user_id: str = payload.get("sub")
        if user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return {"user_id": user_id, "role": payload.get("role", "child")}
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def ensure_can_access(current_user: dict, user_id: str) -> None:
    """Allow the learner themself or a privileged role."""
    if current_user["user_id"] != user_id and current_user.get("role") not in settings.PRIVILEGED_ROLES:
        raise HTTPException(status_code=403, detail="Not authorized to access this learner's progress")
