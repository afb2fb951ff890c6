"""SQL backends (SQLAlchemy) for the response cache and the AI settings record.

SQLite is the default: a single-process desktop deployment needs nothing more.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import (
    DateTime,
    Engine,
    Integer,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from careerbench.core.exceptions import CacheError, SettingsError
from careerbench.core.logging import get_logger
from careerbench.models.cache import CacheEntry, CacheStats
from careerbench.models.settings import CloudBackend, ProviderConfiguration, ProviderMode

logger = get_logger(__name__)

API_KEY_PLACEHOLDER = "***stored_in_secure_storage***"


class UTCDateTime(TypeDecorator):
    """Store aware datetimes as naive UTC; hand them back as aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    pass


class AICacheRow(Base):
    __tablename__ = "ai_cache"
    __table_args__ = (UniqueConstraint("purpose", "input_hash", name="uq_ai_cache_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    purpose: Mapped[str] = mapped_column(String(64), index=True)
    input_hash: Mapped[str] = mapped_column(String(64))
    model_name: Mapped[str] = mapped_column(String(255))
    request_payload: Mapped[str] = mapped_column(Text)
    response_payload: Mapped[str] = mapped_column(Text)
    payload_bytes: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    def to_entry(self) -> CacheEntry:
        return CacheEntry(
            purpose=self.purpose,
            input_hash=self.input_hash,
            model_name=self.model_name,
            request_payload=json.loads(self.request_payload),
            response_payload=json.loads(self.response_payload),
            created_at=self.created_at,
            expires_at=self.expires_at,
        )


class AISettingsRow(Base):
    __tablename__ = "ai_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)  # always 1
    mode: Mapped[str] = mapped_column(String(16), default=ProviderMode.CLOUD.value)
    cloud_provider: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    api_key: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    model_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    local_model_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime)


def create_sql_engine(database_url: str) -> Engine:
    """Create an engine and make sure both tables exist."""
    kwargs: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(engine)
    return engine


class SqlResponseCache:
    """Production IResponseCacheBackend over the ``ai_cache`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = threading.Lock()

    def get(self, purpose: str, input_hash: str, now: datetime) -> CacheEntry | None:
        stmt = select(AICacheRow).where(
            AICacheRow.purpose == purpose, AICacheRow.input_hash == input_hash
        )
        try:
            with self._lock, Session(self._engine) as session:
                row = session.scalars(stmt).first()
                if row is None:
                    return None
                entry = row.to_entry()
        except SQLAlchemyError as exc:
            raise CacheError(f"Cache read failed for purpose={purpose!r}: {exc}") from exc
        return None if entry.is_expired(now) else entry

    def put(self, entry: CacheEntry) -> None:
        request_json = json.dumps(entry.request_payload)
        response_json = json.dumps(entry.response_payload)
        try:
            with self._lock, Session(self._engine) as session, session.begin():
                session.execute(
                    delete(AICacheRow).where(
                        AICacheRow.purpose == entry.purpose,
                        AICacheRow.input_hash == entry.input_hash,
                    )
                )
                session.add(AICacheRow(
                    purpose=entry.purpose,
                    input_hash=entry.input_hash,
                    model_name=entry.model_name,
                    request_payload=request_json,
                    response_payload=response_json,
                    payload_bytes=len(request_json.encode("utf-8")) + len(response_json.encode("utf-8")),
                    created_at=entry.created_at,
                    expires_at=entry.expires_at,
                ))
        except SQLAlchemyError as exc:
            raise CacheError(f"Cache write failed for purpose={entry.purpose!r}: {exc}") from exc

    def _delete_where(self, *criteria: Any) -> int:
        try:
            with self._lock, Session(self._engine) as session, session.begin():
                stmt = delete(AICacheRow)
                if criteria:
                    stmt = stmt.where(*criteria)
                result = session.execute(stmt)
                return result.rowcount or 0
        except SQLAlchemyError as exc:
            raise CacheError(f"Cache delete failed: {exc}") from exc

    def delete_purposes(self, purposes: Sequence[str]) -> int:
        if not purposes:
            return 0
        return self._delete_where(AICacheRow.purpose.in_(list(purposes)))

    def clear_all(self) -> int:
        return self._delete_where()

    def cleanup_expired(self, now: datetime) -> int:
        return self._delete_where(AICacheRow.expires_at.is_not(None), AICacheRow.expires_at < now)

    def evict_by_count(self, max_entries: int) -> int:
        try:
            with self._lock, Session(self._engine) as session, session.begin():
                total = session.scalar(select(func.count(AICacheRow.id))) or 0
                excess = total - max_entries
                if excess <= 0:
                    return 0
                doomed = session.scalars(
                    select(AICacheRow.id)
                    .order_by(AICacheRow.created_at, AICacheRow.id)
                    .limit(excess)
                ).all()
                session.execute(delete(AICacheRow).where(AICacheRow.id.in_(doomed)))
                return len(doomed)
        except SQLAlchemyError as exc:
            raise CacheError(f"Cache eviction by count failed: {exc}") from exc

    def evict_by_size(self, max_bytes: int) -> int:
        try:
            with self._lock, Session(self._engine) as session, session.begin():
                total = session.scalar(select(func.coalesce(func.sum(AICacheRow.payload_bytes), 0))) or 0
                if total <= max_bytes:
                    return 0
                doomed: list[int] = []
                rows = session.execute(
                    select(AICacheRow.id, AICacheRow.payload_bytes)
                    .order_by(AICacheRow.created_at, AICacheRow.id)
                )
                for row_id, size in rows:
                    if total <= max_bytes:
                        break
                    doomed.append(row_id)
                    total -= size
                session.execute(delete(AICacheRow).where(AICacheRow.id.in_(doomed)))
                return len(doomed)
        except SQLAlchemyError as exc:
            raise CacheError(f"Cache eviction by size failed: {exc}") from exc

    def stats(self, now: datetime) -> CacheStats:
        try:
            with self._lock, Session(self._engine) as session:
                entries = [row.to_entry() for row in session.scalars(select(AICacheRow))]
        except SQLAlchemyError as exc:
            raise CacheError(f"Cache stats failed: {exc}") from exc
        return CacheStats.from_entries(entries, now)


class SqlSettingsStore:
    """Production ISettingsStore over the single-row ``ai_settings`` table.

    Only a placeholder marks that an API key exists; the key itself lives in
    the secret store.
    """

    def __init__(self, engine: Engine, default: ProviderConfiguration | None = None) -> None:
        self._engine = engine
        self._default = default or ProviderConfiguration()

    def load(self) -> ProviderConfiguration:
        try:
            with Session(self._engine) as session:
                row = session.get(AISettingsRow, 1)
        except SQLAlchemyError as exc:
            raise SettingsError(f"Failed to load AI settings: {exc}") from exc
        if row is None:
            return self._default.model_copy()

        try:
            mode = ProviderMode(row.mode.lower())
        except ValueError:
            logger.warning("Unknown AI mode in settings, using cloud", mode=row.mode)
            mode = ProviderMode.CLOUD
        backend = None
        if row.cloud_provider:
            try:
                backend = CloudBackend(row.cloud_provider.lower())
            except ValueError:
                logger.warning("Unknown cloud provider in settings", cloud_provider=row.cloud_provider)
        return ProviderConfiguration(
            mode=mode,
            backend=backend,
            model_name=row.model_name,
            local_model_path=row.local_model_path,
        )

    def save(self, config: ProviderConfiguration) -> None:
        try:
            with Session(self._engine) as session, session.begin():
                session.merge(AISettingsRow(
                    id=1,
                    mode=config.mode.value,
                    cloud_provider=config.backend.value if config.backend else None,
                    api_key=API_KEY_PLACEHOLDER if config.credential else None,
                    model_name=config.model_name,
                    local_model_path=config.local_model_path,
                    updated_at=datetime.now(timezone.utc),
                ))
        except SQLAlchemyError as exc:
            raise SettingsError(f"Failed to save AI settings: {exc}") from exc
