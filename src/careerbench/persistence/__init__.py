"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from careerbench.core.config import AppSettings
from careerbench.persistence.protocols import IResponseCacheBackend, ISecretStore, ISettingsStore
from careerbench.models.settings import default_configuration
from careerbench.persistence.memory_backend import (
    MemoryResponseCache,
    MemorySecretStore,
    MemorySettingsStore,
)
from careerbench.persistence.redis_backend import RedisResponseCache
from careerbench.persistence.secrets_backend import AwsSecretsManagerStore
from careerbench.persistence.sql_backend import SqlResponseCache, SqlSettingsStore, create_sql_engine


class Persistence(NamedTuple):
    cache_backend: IResponseCacheBackend
    settings_store: ISettingsStore
    secret_store: ISecretStore


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings.

    The settings record lives in the SQL database unless the cache backend is
    ``memory``, in which case everything is ephemeral.
    """
    if settings is None:
        settings = AppSettings()

    defaults = default_configuration(settings.llm)
    cache_backend: IResponseCacheBackend
    settings_store: ISettingsStore
    if settings.cache.backend == "memory":
        cache_backend = MemoryResponseCache()
        settings_store = MemorySettingsStore(defaults)
    else:
        engine = create_sql_engine(settings.cache.database_url)
        settings_store = SqlSettingsStore(engine, defaults)
        if settings.cache.backend == "redis":
            cache_backend = RedisResponseCache(
                host=settings.redis.host,
                port=settings.redis.port,
                db=settings.redis.db,
                key_prefix=settings.redis.key_prefix,
            )
        else:
            cache_backend = SqlResponseCache(engine)

    secret_store: ISecretStore
    if settings.secrets.backend == "aws":
        secret_store = AwsSecretsManagerStore(
            region=settings.secrets.region,
            endpoint_url=settings.secrets.endpoint_url,
            name_prefix=settings.secrets.name_prefix,
        )
    else:
        secret_store = MemorySecretStore()

    return Persistence(cache_backend, settings_store, secret_store)
