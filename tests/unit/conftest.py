"""Shared fixtures for unit tests."""

import pytest

from texfill.core.config import Settings
from tests.unit.fakes import MINIMAL_TEMPLATE, FakeLLMClient


@pytest.fixture
def minimal_template() -> str:
    return MINIMAL_TEMPLATE


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the host environment and .env file."""
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        compile_backoff_seconds=0,
        workspace_root=tmp_path / "workspaces",
        workspace_cleanup_delay_seconds=0,
    )
