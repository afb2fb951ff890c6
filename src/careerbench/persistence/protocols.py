"""Re-export persistence protocols from core for convenience."""

from __future__ import annotations

from careerbench.core.protocols import IResponseCacheBackend, ISecretStore, ISettingsStore

__all__ = ["IResponseCacheBackend", "ISecretStore", "ISettingsStore"]
