# tests/conftest.py
import os

# Settings are read at import time; provide the required values first.
os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("ALLOWED_ORIGIN", "http://localhost")
os.environ.setdefault("RATE_LIMIT_TIMES", "1000")
os.environ.setdefault("RATE_LIMIT_SECONDS", "60")
os.environ.setdefault("TRUST_PROXY", "false")

import pytest  # noqa: E402

from fakes import InMemoryAssetRepository, InMemoryItemRepository, StubProvider  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def items():
    return InMemoryItemRepository()


@pytest.fixture
def assets():
    return InMemoryAssetRepository()


@pytest.fixture
def provider():
    return StubProvider()
