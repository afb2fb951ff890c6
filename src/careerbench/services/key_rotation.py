"""API key rotation with validation before the new key is committed."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import SecretStr

from careerbench.core.exceptions import AIProviderError, InvalidApiKeyError, KeyRotationError
from careerbench.core.logging import get_logger
from careerbench.core.protocols import ISecretStore
from careerbench.model_providers.resolver import ProviderResolver
from careerbench.models.inputs import JobParsingInput
from careerbench.models.settings import CloudBackend, KeyMetadata, ProviderConfiguration, ProviderMode

logger = get_logger(__name__)

API_KEY_SECRET = "ai_api_key"
DEFAULT_MAX_KEY_AGE_DAYS = 90
VALIDATION_JOB_DESCRIPTION = "Test job: Software Engineer at Test Company"


async def rotate_api_key(
    new_api_key: str,
    backend: CloudBackend,
    secret_store: ISecretStore,
    resolver: ProviderResolver,
) -> KeyMetadata:
    """Validate ``new_api_key`` with a test call, then rotate it into the secret store.

    Only an explicit invalid-key response blocks the rotation; other failures
    (network, rate limiting) may be transient and are logged.
    """
    if not new_api_key.strip():
        raise KeyRotationError("API key cannot be empty")

    provider = resolver.build_cloud(
        ProviderConfiguration(mode=ProviderMode.CLOUD, backend=backend, credential=SecretStr(new_api_key)),
        cached=False,
    )
    logger.info("Validating new API key before rotation", backend=backend)
    try:
        await provider.parse_job(JobParsingInput(job_description=VALIDATION_JOB_DESCRIPTION))
    except InvalidApiKeyError as exc:
        raise KeyRotationError(
            "Invalid API key: The provided key is not valid for this provider"
        ) from exc
    except AIProviderError as exc:
        logger.warning("API key validation returned error (may be transient)", error=str(exc), kind=exc.kind)
    else:
        logger.info("New API key validated")

    metadata = secret_store.rotate_secret(API_KEY_SECRET, new_api_key)
    logger.info("API key rotated", rotation_count=metadata.rotation_count)
    return metadata


def get_api_key_metadata(secret_store: ISecretStore) -> KeyMetadata | None:
    return secret_store.get_metadata(API_KEY_SECRET)


def should_rotate_key(
    secret_store: ISecretStore,
    max_age_days: int = DEFAULT_MAX_KEY_AGE_DAYS,
    now: datetime | None = None,
) -> int | None:
    """Age in days when the key is due for rotation, else ``None``.

    Age counts from the last rotation, or from creation if never rotated.
    """
    metadata = get_api_key_metadata(secret_store)
    if metadata is None:
        return None
    now = now or datetime.now(timezone.utc)
    since = metadata.last_rotated_at or metadata.created_at
    age_days = (now - since).days
    return age_days if age_days >= max_age_days else None
