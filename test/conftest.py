from typing import AsyncGenerator

import pytest
import pytest_asyncio
from generation_server import GenerationServer
from higgsfield_client import v2
from higgsfield_client.models import ClientConfig


@pytest_asyncio.fixture
async def server(unused_tcp_port_factory) -> AsyncGenerator[GenerationServer, None]:
    """Start and yield a scriptable GenerationServer on a random port."""
    server_instance = GenerationServer()
    await server_instance.start(port=unused_tcp_port_factory())
    try:
        yield server_instance
    finally:
        await server_instance.stop()


@pytest.fixture
def config(server) -> ClientConfig:
    """Fast polling and near-instant retries against the local server."""
    return ClientConfig(
        base_url=server.base_url,
        api_key="test-key",
        api_secret="test-secret",
        max_retries=2,
        retry_backoff=0.001,
        retry_max_backoff=0.001,
        poll_interval=0.01,
        max_poll_time=5.0,
        timeout=5.0,
    )


@pytest.fixture(autouse=True)
def reset_default_client():
    v2.reset()
    yield
    v2.reset()


@pytest.fixture
def clear_credentials_env(monkeypatch):
    for name in ("HF_CREDENTIALS", "HF_KEY", "HF_API_KEY", "HF_API_SECRET"):
        monkeypatch.delenv(name, raising=False)
