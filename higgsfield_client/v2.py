import threading
from typing import Any, Dict, Optional

from loguru import logger

from higgsfield_client.auth import CredentialsProvider, check_environment, fetch_credentials
from higgsfield_client.models import ClientConfig, RequestJobSet, Webhook
from higgsfield_client.retry import retry_with_backoff
from higgsfield_client.transport import AuthScheme, HttpTransport


class HiggsfieldV2Client:
    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        credentials_provider: CredentialsProvider = fetch_credentials,
    ):
        check_environment()
        self.config = config or ClientConfig()
        self.transport = HttpTransport(
            self.config,
            auth_scheme=AuthScheme.authorization,
            credentials_provider=credentials_provider,
        )
        self.logger = logger

    async def subscribe(
        self,
        endpoint: str,
        input: Dict[str, Any],
        webhook: Optional[Webhook] = None,
        with_polling: bool = True,
    ) -> RequestJobSet:
        """Submit ``input`` to ``endpoint`` and, by default, poll until it settles."""
        path = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        params = {"hf_webhook": webhook.url} if webhook is not None else None
        body = dict(input)

        data = await retry_with_backoff(
            lambda: self.transport.post(path, json=body, params=params),
            max_retries=self.config.max_retries,
            backoff=self.config.retry_backoff,
            max_backoff=self.config.retry_max_backoff,
        )
        request = RequestJobSet.from_response(data)
        self.logger.debug(f"Submitted request {request.id} to {path}")

        if with_polling and request.id:
            await request.poll(self.transport, self.config)
        return request

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "HiggsfieldV2Client":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()


_default_client: Optional[HiggsfieldV2Client] = None
_default_lock = threading.Lock()


def configure(config: ClientConfig) -> HiggsfieldV2Client:
    """Replace the default client with one built from ``config``."""
    global _default_client
    client = HiggsfieldV2Client(config)
    with _default_lock:
        _default_client = client
    return client


def get_default_client() -> HiggsfieldV2Client:
    """Return the default client, creating it from the environment on first use."""
    global _default_client
    with _default_lock:
        if _default_client is None:
            _default_client = HiggsfieldV2Client()
        return _default_client


def reset() -> None:
    """Forget the default client, dropping its HTTP session without awaiting it."""
    global _default_client
    with _default_lock:
        client, _default_client = _default_client, None
    if client is not None:
        client.transport.discard()


async def aclose_default() -> None:
    """Close and forget the default client."""
    global _default_client
    with _default_lock:
        client, _default_client = _default_client, None
    if client is not None:
        await client.close()


async def subscribe(
    endpoint: str,
    input: Dict[str, Any],
    webhook: Optional[Webhook] = None,
    with_polling: bool = True,
) -> RequestJobSet:
    return await get_default_client().subscribe(
        endpoint, input, webhook=webhook, with_polling=with_polling
    )
