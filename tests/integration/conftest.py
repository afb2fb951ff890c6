"""Integration test fixtures: LocalStack Secrets Manager and a real GGUF model."""

from __future__ import annotations

import os
from pathlib import Path

import boto3
import pytest
from botocore.exceptions import BotoCoreError, ClientError

# Default LocalStack endpoint
LOCALSTACK_URL = os.environ.get("LOCALSTACK_URL", "http://localhost:4566")
MODEL_PATH = os.environ.get("CAREERBENCH_TEST_MODEL_PATH")


def _localstack_available() -> bool:
    """Check if LocalStack is reachable."""
    try:
        client = boto3.client(
            "secretsmanager",
            region_name="us-east-1",
            endpoint_url=LOCALSTACK_URL,
            aws_access_key_id="test",
            aws_secret_access_key="test",
        )
        client.list_secrets(MaxResults=1)
        return True
    except (BotoCoreError, ClientError):
        return False


def _llama_available() -> bool:
    try:
        import llama_cpp  # noqa: F401
    except ImportError:
        return False
    return True


skip_no_localstack = pytest.mark.skipif(
    not _localstack_available(),
    reason="LocalStack not available",
)

skip_no_model = pytest.mark.skipif(
    not (MODEL_PATH and Path(MODEL_PATH).exists() and _llama_available()),
    reason="CAREERBENCH_TEST_MODEL_PATH not set or llama-cpp-python not installed",
)


@pytest.fixture
def localstack_env(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test")
    return LOCALSTACK_URL


@pytest.fixture(scope="session")
def model_path() -> str:
    return MODEL_PATH or ""
