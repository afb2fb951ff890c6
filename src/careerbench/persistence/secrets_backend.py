"""AWS Secrets Manager backend implementing ISecretStore.

Each secret is one JSON document holding the value and its KeyMetadata, so
rotation history travels with the credential.
"""

from __future__ import annotations

from datetime import datetime, timezone

import boto3
from botocore.exceptions import ClientError

from careerbench.core.exceptions import SecretStoreError
from careerbench.core.logging import get_logger
from careerbench.models.settings import KeyMetadata, StoredSecret

logger = get_logger(__name__)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class AwsSecretsManagerStore:
    """Production ISecretStore backed by AWS Secrets Manager."""

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None,
                 name_prefix: str = "careerbench/") -> None:
        self._prefix = name_prefix
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("secretsmanager", **kwargs)

    def _secret_id(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def _load(self, name: str) -> StoredSecret | None:
        try:
            resp = self._client.get_secret_value(SecretId=self._secret_id(name))
        except ClientError as exc:
            if _error_code(exc) == "ResourceNotFoundException":
                return None
            raise SecretStoreError(f"Failed to read secret {name!r}: {exc}") from exc
        return StoredSecret.model_validate_json(resp["SecretString"])

    def _write(self, name: str, stored: StoredSecret) -> None:
        secret_id = self._secret_id(name)
        body = stored.model_dump_json()
        try:
            try:
                self._client.put_secret_value(SecretId=secret_id, SecretString=body)
            except ClientError as exc:
                if _error_code(exc) != "ResourceNotFoundException":
                    raise
                self._client.create_secret(Name=secret_id, SecretString=body)
        except ClientError as exc:
            raise SecretStoreError(f"Failed to write secret {name!r}: {exc}") from exc

    # ---- ISecretStore methods ----

    def get_secret(self, name: str) -> str | None:
        stored = self._load(name)
        return stored.value if stored else None

    def store_secret(self, name: str, value: str) -> None:
        existing = self._load(name)
        metadata = existing.metadata if existing else KeyMetadata(created_at=datetime.now(timezone.utc))
        self._write(name, StoredSecret(value=value, metadata=metadata))
        logger.info("Secret stored", name=name)

    def remove_secret(self, name: str) -> None:
        try:
            self._client.delete_secret(
                SecretId=self._secret_id(name), ForceDeleteWithoutRecovery=True
            )
        except ClientError as exc:
            if _error_code(exc) == "ResourceNotFoundException":
                return
            raise SecretStoreError(f"Failed to delete secret {name!r}: {exc}") from exc
        logger.info("Secret removed", name=name)

    def rotate_secret(self, name: str, value: str) -> KeyMetadata:
        existing = self._load(name)
        now = datetime.now(timezone.utc)
        if existing is None:
            metadata = KeyMetadata(created_at=now)
        else:
            metadata = existing.metadata.model_copy(update={
                "last_rotated_at": now,
                "rotation_count": existing.metadata.rotation_count + 1,
            })
        self._write(name, StoredSecret(value=value, metadata=metadata))
        logger.info("Secret rotated", name=name, rotation_count=metadata.rotation_count)
        return metadata

    def get_metadata(self, name: str) -> KeyMetadata | None:
        stored = self._load(name)
        return stored.metadata if stored else None
