import asyncio
import json
import sys

import pytest
from generation_server import GenerationServer
from higgsfield_client import v2
from higgsfield_client.errors import (
    BadInputError,
    CredentialsMissedError,
    NotEnoughCreditsError,
    UnsupportedEnvironmentError,
)
from higgsfield_client.helpers import webhook
from higgsfield_client.models import ClientConfig, JobSet
from higgsfield_client.v2 import HiggsfieldV2Client

ENDPOINT = "nano-banana-pro"


def submitted(request_id="req-123", status="queued"):
    return {
        "status": status,
        "request_id": request_id,
        "status_url": f"https://platform.higgsfield.ai/requests/{request_id}/status",
        "cancel_url": f"https://platform.higgsfield.ai/requests/{request_id}/cancel",
    }


@pytest.fixture
def v2_config(config) -> ClientConfig:
    return config.model_copy(
        update={"api_key": None, "api_secret": None, "credentials": "test-key:test-secret"}
    )


@pytest.mark.asyncio
async def test_subscribe_posts_input_and_polls(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", submitted())
    server.enqueue(
        "GET",
        "/requests/req-123/status",
        {"status": "completed", "request_id": "req-123", "images": [{"url": "https://example.com/image.jpg"}]},
    )

    async with HiggsfieldV2Client(v2_config) as client:
        result = await client.subscribe(
            ENDPOINT, input={"prompt": "A sunset over mountains", "aspect_ratio": "16:9"}
        )

    assert isinstance(result, JobSet)
    assert result.id == "req-123"
    assert result.is_completed
    assert result.jobs[0].results["raw"].url == "https://example.com/image.jpg"
    assert result.jobs[0].results["min"].url == "https://example.com/image.jpg"
    submission = server.requests_to("POST", "/nano-banana-pro")[0]
    assert json.loads(submission.body) == {"prompt": "A sunset over mountains", "aspect_ratio": "16:9"}
    assert submission.headers["Authorization"] == "Key test-key:test-secret"
    assert submission.headers["User-Agent"] == "higgsfield-server-py/2.0"


@pytest.mark.asyncio
async def test_subscribe_without_polling(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", submitted("req-456"))

    async with HiggsfieldV2Client(v2_config) as client:
        result = await client.subscribe(ENDPOINT, input={"prompt": "x"}, with_polling=False)

    assert result.id == "req-456"
    assert result.is_queued
    assert result.status_url.endswith("/requests/req-456/status")
    assert server.requests_to("GET", "/requests/req-456/status") == []


@pytest.mark.asyncio
async def test_webhook_sent_as_query_parameter(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", submitted("req-789"))

    async with HiggsfieldV2Client(v2_config) as client:
        await client.subscribe(
            "/nano-banana-pro",
            input={"prompt": "x"},
            webhook=webhook("https://example.com/hook?a=1", "secret"),
            with_polling=False,
        )

    submission = server.requests_to("POST", "/nano-banana-pro")[0]
    assert submission.query == {"hf_webhook": "https://example.com/hook?a=1"}
    assert "webhook" not in json.loads(submission.body)


@pytest.mark.asyncio
async def test_status_transitions_until_completed(server, v2_config):
    url = "/requests/req-poll/status"
    server.enqueue("POST", "/nano-banana-pro", submitted("req-poll"))
    server.enqueue("GET", url, {"status": "queued", "request_id": "req-poll"})
    server.enqueue("GET", url, {"status": "in_progress", "request_id": "req-poll"})
    server.enqueue(
        "GET",
        url,
        {"status": "completed", "request_id": "req-poll", "images": [{"url": "https://example.com/final.jpg"}]},
    )

    async with HiggsfieldV2Client(v2_config) as client:
        result = await client.subscribe(ENDPOINT, input={"prompt": "x"})

    assert result.is_completed
    assert len(server.requests_to("GET", url)) == 3


@pytest.mark.asyncio
async def test_first_of_multiple_images_fills_both_slots(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", submitted("req-multi"))
    server.enqueue(
        "GET",
        "/requests/req-multi/status",
        {
            "status": "completed",
            "request_id": "req-multi",
            "images": [{"url": "https://example.com/1.jpg"}, {"url": "https://example.com/2.jpg"}],
        },
    )

    async with HiggsfieldV2Client(v2_config) as client:
        result = await client.subscribe(ENDPOINT, input={"prompt": "x"})

    assert result.jobs[0].results["raw"].url == "https://example.com/1.jpg"
    assert result.jobs[0].results["min"].type == "image"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["failed", "nsfw"])
async def test_failed_and_nsfw_stop_polling(server, v2_config, status):
    server.enqueue("POST", "/nano-banana-pro", submitted("req-end"))
    server.enqueue("GET", "/requests/req-end/status", {"status": status, "request_id": "req-end"})

    async with HiggsfieldV2Client(v2_config) as client:
        result = await client.subscribe(ENDPOINT, input={"prompt": "x"})

    assert result.is_failed == (status == "failed")
    assert result.is_nsfw == (status == "nsfw")
    assert result.jobs[0].results is None


@pytest.mark.asyncio
async def test_submission_errors_are_classified(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", {"detail": "no credits"}, status=403)

    async with HiggsfieldV2Client(v2_config) as client:
        with pytest.raises(NotEnoughCreditsError):
            await client.subscribe(ENDPOINT, input={"prompt": "x"})


def test_malformed_credentials_string_is_rejected(v2_config):
    with pytest.raises(BadInputError):
        HiggsfieldV2Client(v2_config.model_copy(update={"credentials": "invalid-format"}))


def test_separate_key_and_secret_build_authorization_header(config):
    client = HiggsfieldV2Client(config)

    headers = client.transport.build_headers(client.transport.credentials)

    assert headers["Authorization"] == "Key test-key:test-secret"


def test_browser_environment_is_rejected(monkeypatch, v2_config):
    monkeypatch.setattr(sys, "platform", "emscripten")

    with pytest.raises(UnsupportedEnvironmentError):
        HiggsfieldV2Client(v2_config)
    with pytest.raises(UnsupportedEnvironmentError):
        v2.configure(v2_config)


@pytest.mark.asyncio
async def test_module_level_subscribe_uses_configured_client(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", submitted("req-global"))

    client = v2.configure(v2_config)
    try:
        result = await v2.subscribe(ENDPOINT, input={"prompt": "x"}, with_polling=False)
        assert v2.get_default_client() is client
    finally:
        await client.close()

    assert result.id == "req-global"


@pytest.mark.asyncio
async def test_default_client_reads_environment_on_first_use(
    server, v2_config, monkeypatch, clear_credentials_env
):
    monkeypatch.setattr(v2, "ClientConfig", lambda: v2_config.model_copy(update={"credentials": None}))
    server.enqueue("POST", "/nano-banana-pro", submitted("req-env"))

    with pytest.raises(CredentialsMissedError):
        await v2.subscribe(ENDPOINT, input={"prompt": "x"}, with_polling=False)

    monkeypatch.setenv("HF_CREDENTIALS", "env-key:env-secret")
    client = v2.get_default_client()
    try:
        await v2.subscribe(ENDPOINT, input={"prompt": "x"}, with_polling=False)
    finally:
        await client.close()

    assert server.requests[0].headers["Authorization"] == "Key env-key:env-secret"


@pytest.mark.asyncio
async def test_submission_without_request_id_is_not_polled(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", {"status": "completed", "images": [{"url": "https://x/i.png"}]})

    async with HiggsfieldV2Client(v2_config) as client:
        result = await client.subscribe(ENDPOINT, input={"prompt": "x"})

    assert result.is_completed
    assert result.jobs[0].results["raw"].url == "https://x/i.png"
    assert [r.method for r in server.requests] == ["POST"]


def test_module_level_subscribe_across_event_loops(unused_tcp_port):
    config = ClientConfig(
        base_url=f"http://localhost:{unused_tcp_port}",
        credentials="test-key:test-secret",
        retry_backoff=0.001,
        retry_max_backoff=0.001,
        poll_interval=0.01,
    )
    v2.configure(config)

    async def run_once(request_id):
        server_instance = GenerationServer()
        server_instance.enqueue("POST", "/nano-banana-pro", submitted(request_id))
        await server_instance.start(port=unused_tcp_port)
        try:
            return await v2.subscribe(ENDPOINT, input={"prompt": "x"}, with_polling=False)
        finally:
            await server_instance.stop()

    first = asyncio.run(run_once("req-loop-1"))
    second = asyncio.run(run_once("req-loop-2"))
    asyncio.run(v2.aclose_default())

    assert first.id == "req-loop-1"
    assert second.id == "req-loop-2"


@pytest.mark.asyncio
async def test_aclose_default_closes_the_session(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", submitted("req-close"))
    client = v2.configure(v2_config)
    await v2.subscribe(ENDPOINT, input={"prompt": "x"}, with_polling=False)
    session = client.transport._session

    await v2.aclose_default()

    assert session.closed
    assert v2.get_default_client() is not client


@pytest.mark.asyncio
async def test_reset_drops_the_default_session(server, v2_config):
    server.enqueue("POST", "/nano-banana-pro", submitted("req-reset"))
    client = v2.configure(v2_config)
    await v2.subscribe(ENDPOINT, input={"prompt": "x"}, with_polling=False)
    session = client.transport._session

    v2.reset()

    assert session.closed
    assert client.transport._session is None
